from urllib.parse import urlsplit

import pytest

from metadata_viewer.utils import helpers


@pytest.mark.parametrize("raw,expected", [
    ("https:/img.test/a.png", "https://img.test/a.png"),
    ("http:/img.test/a.png", "http://img.test/a.png"),
    ("  https://img.test/a.png \n", "https://img.test/a.png"),
    ("img.test/a.png", "img.test/a.png"),
])
def test_normalize_url(raw, expected):
    assert helpers.normalize_url(raw) == expected


def test_extension_from_name():
    assert helpers.extension_from_name("Photo.JPEG") == "jpeg"
    assert helpers.extension_from_name("archive.tar.gz") == "gz"
    assert helpers.extension_from_name("README") == ""
    assert helpers.extension_from_name(None) == ""


def test_file_name_from_url():
    assert helpers.file_name_from_url(urlsplit("https://img.test/a/b/photo.png?x=1")) == "photo.png"
    assert helpers.file_name_from_url(urlsplit("https://img.test/")) == ""
    assert helpers.file_name_from_url(urlsplit("https://img.test")) == ""
    assert helpers.file_name_from_url(None) == ""


def test_content_type_base():
    assert helpers.content_type_base("image/png; charset=binary") == "image/png"
    assert helpers.content_type_base("") == ""
    assert helpers.content_type_base(None) == ""


def test_format_to_extension():
    assert helpers.format_to_extension("jpeg") == "jpg"
    assert helpers.format_to_extension("TIFF") == "tif"
    assert helpers.format_to_extension("webp") == "webp"
