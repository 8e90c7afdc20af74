from PIL import Image
from PIL.ExifTags import IFD, Base
from PIL.TiffImagePlugin import IFDRational

from conftest import make_image_bytes
from metadata_viewer.metadata.exif import (
    CaptureMetadata,
    collect_tags,
    extract_exif,
    orientation_label,
    resolution_unit_label,
)


def make_jpeg_with_exif(exif):
    return make_image_bytes("JPEG", (40, 30), exif=exif)


# ------------------------------
# extract_exif
# ------------------------------

def test_extract_exif_from_jpeg():
    exif = Image.Exif()
    exif[Base.Orientation] = 6
    exif[Base.Software] = "PhotoTool 1.0"
    exif[Base.DateTime] = "2024:05:01 10:00:00"
    exif[Base.XResolution] = IFDRational(300, 1)
    exif[Base.YResolution] = IFDRational(144, 2)
    exif[Base.ResolutionUnit] = 2

    meta = extract_exif(make_jpeg_with_exif(exif))

    assert meta.orientation == "Rotate 90 CW"
    assert meta.software == "PhotoTool 1.0"
    assert meta.creator_tool == "PhotoTool 1.0"
    assert meta.modify_date == "2024:05:01 10:00:00"
    assert meta.x_resolution == 300
    assert meta.y_resolution == 72
    assert meta.resolution_unit == "inches"


def test_extract_exif_reads_exif_sub_ifd():
    exif = Image.Exif()
    exif[Base.Orientation] = 1
    exif[IFD.Exif] = {Base.DateTimeOriginal: "2023:12:24 18:30:00", Base.ColorSpace: 1}

    meta = extract_exif(make_jpeg_with_exif(exif))

    assert meta.orientation == "Horizontal (normal)"
    assert meta.create_date == "2023:12:24 18:30:00"
    assert meta.color_space == "sRGB"
    assert meta.color_mode == "RGB"


def test_extract_exif_without_directory_is_empty():
    assert extract_exif(make_image_bytes("PNG", (10, 10))) == CaptureMetadata()


def test_extract_exif_never_raises_on_garbage():
    assert extract_exif(b"") == CaptureMetadata()
    assert extract_exif(b"\xff\xd8\xff\xe1garbage") == CaptureMetadata()
    assert extract_exif(b"not an image at all").as_dict() == {}


# ------------------------------
# collect_tags
# ------------------------------

def test_collect_tags_isolates_bad_values():
    primary = {
        Base.Orientation: "sideways",          # type mismatch
        Base.Software: b"Editor\x00",
        Base.XResolution: IFDRational(300, 0),  # zero denominator
        Base.YResolution: (300, 1),
        Base.ResolutionUnit: 3,
    }
    meta = collect_tags(primary)

    assert meta.orientation is None
    assert meta.x_resolution is None
    assert meta.software == "Editor"
    assert meta.y_resolution == 300
    assert meta.resolution_unit == "centimeters"


def test_collect_tags_prefers_ifd0_over_sub_ifd():
    meta = collect_tags({Base.DateTime: "2020:01:01 00:00:00"}, {Base.DateTime: "1999:01:01 00:00:00"})
    assert meta.modify_date == "2020:01:01 00:00:00"


def test_collect_tags_uncalibrated_color_space():
    meta = collect_tags({}, {Base.ColorSpace: 65535})
    assert meta.color_space == "Uncalibrated"
    assert meta.color_mode is None


def test_collect_tags_skips_empty_strings():
    meta = collect_tags({Base.Software: "  \x00", Base.Orientation: (8,)})
    assert meta.software is None
    assert meta.orientation == "Rotate 270 CW"
    assert meta.as_dict() == {"orientation": "Rotate 270 CW"}


def test_orientation_labels():
    assert orientation_label(3) == "Rotate 180"
    assert orientation_label(9) == "Unknown (9)"
    assert orientation_label(0) == "Unknown (0)"


def test_resolution_unit_labels():
    assert resolution_unit_label(2) == "inches"
    assert resolution_unit_label(3) == "centimeters"
    assert resolution_unit_label(1) == "unknown"
