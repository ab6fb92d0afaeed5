"""Shared pytest fixtures for Qt application lifecycle."""

import os
import sys

import pytest
from PySide6.QtCore import QCoreApplication
from PySide6.QtGui import QGuiApplication

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def app():
    """Provide a single QGuiApplication for all tests."""
    instance = QGuiApplication.instance()
    if instance is None:
        instance = QGuiApplication(sys.argv)

    yield instance

    QCoreApplication.processEvents()


@pytest.fixture
def canvas(app):
    from knitspace import SketchCanvas

    sketch = SketchCanvas(idle_ms=20)
    sketch.setSurfaceGeometry(10.0, 20.0, 200.0, 100.0)
    yield sketch
    sketch.dispose()
