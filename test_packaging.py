"""Packaging regression tests."""

import re
from pathlib import Path
from typing import Set


def _read_dependencies() -> Set[str]:
    pyproject = Path("pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r"^dependencies\s*=\s*\[(.*?)\]", pyproject, flags=re.DOTALL | re.MULTILINE)
    assert match is not None, "dependencies are missing from pyproject.toml"
    return {re.split(r"[<>=!~ ]", spec, 1)[0] for spec in re.findall(r'"([^"]+)"', match.group(1))}


def test_runtime_dependencies_are_declared():
    dependencies = _read_dependencies()
    required = {"PySide6", "pydantic", "perfect-freehand"}
    missing = required - dependencies
    assert not missing, f"Missing dependencies in pyproject.toml: {sorted(missing)}"


def test_package_is_listed():
    pyproject = Path("pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r"packages\s*=\s*\[(.*?)\]", pyproject, flags=re.DOTALL)
    assert match is not None, "packages is missing from pyproject.toml"
    assert "knitspace" in re.findall(r'"([^"]+)"', match.group(1))
