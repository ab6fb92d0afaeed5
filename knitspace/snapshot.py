"""Rasterize stroke outlines into PNG data URLs."""

from __future__ import annotations

import base64
from typing import Iterable, Sequence, Tuple

from PySide6.QtCore import QByteArray, QBuffer, QIODevice, QPointF, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPainterPath

from .constants import SNAPSHOT_MIME_TYPE, TRANSPARENT
from .errors import CaptureError

Vec = Tuple[float, float]


def image_to_png_base64(image: QImage) -> str:
    """Return a PNG base64 payload for a QImage, or empty string on failure."""
    if image.isNull():
        return ""

    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    if not buffer.open(QIODevice.WriteOnly):
        return ""
    save_ok = image.save(buffer, "PNG")
    buffer.close()
    if not save_ok:
        return ""

    raw = bytes(byte_array)
    if not raw:
        return ""
    return base64.b64encode(raw).decode("ascii")


def png_data_url(image: QImage) -> str:
    """Render a QImage as a ``data:image/png;base64,...`` URL."""
    payload = image_to_png_base64(image)
    if not payload:
        return ""
    return f"data:{SNAPSHOT_MIME_TYPE};base64,{payload}"


def painter_path_from_outline(outline: Sequence[Vec]) -> QPainterPath:
    """Same closed quadratic shape as ``svg_path_from_outline``."""
    path = QPainterPath()
    if not outline:
        return path
    path.moveTo(QPointF(outline[0][0], outline[0][1]))
    n = len(outline)
    for i, (x0, y0) in enumerate(outline):
        x1, y1 = outline[(i + 1) % n]
        path.quadTo(QPointF(x0, y0), QPointF((x0 + x1) / 2, (y0 + y1) / 2))
    path.closeSubpath()
    return path


def snapshot_size(width: float, height: float) -> Tuple[int, int]:
    """Whole-pixel snapshot size for a surface, at least 1x1."""
    if not width or not height or width <= 0 or height <= 0:
        raise CaptureError(f"Surface has no area ({width}x{height})")
    return max(1, round(width)), max(1, round(height))


def rasterize_outlines(
    outlines: Iterable[Sequence[Vec]],
    width: float,
    height: float,
    device_pixel_ratio: float = 1.0,
    background: str = TRANSPARENT,
    ink: str = "black",
) -> QImage:
    """Fill each outline into a fresh image sized to the surface."""
    logical_width, logical_height = snapshot_size(width, height)
    dpr = device_pixel_ratio if device_pixel_ratio and device_pixel_ratio > 0 else 1.0

    image = QImage(
        round(logical_width * dpr),
        round(logical_height * dpr),
        QImage.Format_ARGB32_Premultiplied,
    )
    image.fill(Qt.transparent)

    painter = QPainter(image)
    try:
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.scale(dpr, dpr)
        fill = QColor(background)
        if fill.isValid() and fill.alpha() > 0:
            painter.fillRect(0, 0, logical_width, logical_height, fill)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(ink))
        for outline in outlines:
            if outline:
                painter.drawPath(painter_path_from_outline(outline))
    finally:
        painter.end()
    return image
