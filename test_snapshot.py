"""Tests for outline rasterization and PNG encoding."""

import base64

import pytest
from PySide6.QtGui import QImage

from knitspace.errors import CaptureError
from knitspace.snapshot import (
    image_to_png_base64,
    painter_path_from_outline,
    png_data_url,
    rasterize_outlines,
    snapshot_size,
)

SQUARE = [(10.0, 10.0), (90.0, 10.0), (90.0, 90.0), (10.0, 90.0)]


class TestSnapshotSize:
    def test_rounds_to_whole_pixels(self):
        assert snapshot_size(200.4, 99.6) == (200, 100)

    def test_minimum_one_pixel(self):
        assert snapshot_size(0.3, 0.2) == (1, 1)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-5, 10), (None, 10)])
    def test_no_area_raises(self, width, height):
        with pytest.raises(CaptureError):
            snapshot_size(width, height)


class TestRasterize:
    def test_device_pixel_ratio_scales_image(self, app):
        image = rasterize_outlines([SQUARE], 200, 100, device_pixel_ratio=2.0)
        assert (image.width(), image.height()) == (400, 200)

    def test_transparent_background_by_default(self, app):
        image = rasterize_outlines([SQUARE], 200, 100)
        assert image.pixelColor(150, 50).alpha() == 0

    def test_background_fill(self, app):
        image = rasterize_outlines([SQUARE], 200, 100, background="#ffffff")
        color = image.pixelColor(150, 50)
        assert (color.red(), color.green(), color.blue(), color.alpha()) == (255, 255, 255, 255)

    def test_outline_is_filled_with_ink(self, app):
        image = rasterize_outlines([SQUARE], 200, 100)
        color = image.pixelColor(50, 50)
        assert color.alpha() == 255
        assert (color.red(), color.green(), color.blue()) == (0, 0, 0)

    def test_empty_outlines_are_skipped(self, app):
        image = rasterize_outlines([[], SQUARE], 100, 100)
        assert image.pixelColor(50, 50).alpha() == 255

    def test_zero_size_raises(self, app):
        with pytest.raises(CaptureError):
            rasterize_outlines([SQUARE], 0, 100)


class TestEncoding:
    def test_png_data_url(self, app):
        data_url = png_data_url(rasterize_outlines([SQUARE], 100, 100))
        prefix = "data:image/png;base64,"
        assert data_url.startswith(prefix)
        raw = base64.b64decode(data_url[len(prefix):])
        assert raw.startswith(b"\x89PNG")

    def test_null_image_encodes_to_nothing(self, app):
        assert image_to_png_base64(QImage()) == ""
        assert png_data_url(QImage()) == ""


def test_painter_path_is_closed(app):
    path = painter_path_from_outline(SQUARE)
    assert path.contains(path.boundingRect().center())
    assert painter_path_from_outline([]).isEmpty()
