"""Tests for download filename derivation."""

import pytest

from pixelshift.conversion.delivery import download_filename
from pixelshift.conversion.models import ImageFormat


class TestDownloadFilename:
    def test_last_extension_replaced(self):
        assert download_filename("vacation.photo.tiff", ImageFormat.WEBP) == "vacation.photo.webp"

    def test_no_extension_keeps_whole_name(self):
        assert download_filename("noext", ImageFormat.PNG) == "noext.png"

    def test_heic_to_png(self):
        assert download_filename("photo.heic", ImageFormat.PNG) == "photo.png"

    def test_leading_dot_name_is_base(self):
        assert download_filename(".bashrc", ImageFormat.GIF) == ".bashrc.gif"

    def test_trailing_dot(self):
        assert download_filename("photo.", ImageFormat.JPEG) == "photo.jpeg"

    def test_directory_parts_dropped(self):
        assert download_filename("C:\\Users\\me\\cat.bmp", ImageFormat.PNG) == "cat.png"
        assert download_filename("../../etc/cat.gif", ImageFormat.PNG) == "cat.png"

    @pytest.mark.parametrize("original", [None, "", "   "])
    def test_missing_name_falls_back(self, original):
        assert download_filename(original, ImageFormat.JPEG) == "download.jpeg"
