"""EXIF capture metadata extraction.

Extraction is best effort. A missing or unreadable EXIF directory yields an
empty ``CaptureMetadata``, and every tag is read independently so a malformed
value only drops that one field.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from PIL.ExifTags import IFD, Base

from metadata_viewer.metadata.decoder import open_header, sniff_format

log = logging.getLogger(__name__)

ORIENTATION_LABELS = {
    1: "Horizontal (normal)",
    2: "Mirror horizontal",
    3: "Rotate 180",
    4: "Mirror vertical",
    5: "Mirror horizontal and rotate 270 CW",
    6: "Rotate 90 CW",
    7: "Mirror horizontal and rotate 90 CW",
    8: "Rotate 270 CW",
}

RESOLUTION_UNITS = {
    2: "inches",
    3: "centimeters",
}


@dataclass
class CaptureMetadata:
    """Capture fields found in the EXIF directory. Unset fields are ``None``."""
    orientation: Optional[str] = None
    software: Optional[str] = None
    creator_tool: Optional[str] = None
    modify_date: Optional[str] = None
    create_date: Optional[str] = None
    x_resolution: Optional[int] = None
    y_resolution: Optional[int] = None
    resolution_unit: Optional[str] = None
    color_space: Optional[str] = None
    color_mode: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        """Populated fields only."""
        return {key: value for key, value in asdict(self).items() if value is not None}


def orientation_label(value: int) -> str:
    return ORIENTATION_LABELS.get(value, f"Unknown ({value})")


def resolution_unit_label(value: int) -> str:
    return RESOLUTION_UNITS.get(value, "unknown")


def _first(value: Any) -> Any:
    if isinstance(value, (tuple, list)):
        if not value:
            raise ValueError("empty value")
        return value[0]
    return value


def _as_int(value: Any) -> int:
    value = _first(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected integer, got {type(value).__name__}")
    return value


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    value = value.strip("\x00").strip()
    if not value:
        raise ValueError("empty string")
    return value


def _as_rational(value: Any) -> Tuple[int, int]:
    # Legacy readers hand back (numerator, denominator) pairs
    if isinstance(value, tuple) and len(value) == 2 and all(isinstance(v, int) for v in value):
        return value[0], value[1]
    value = _first(value)
    return value.numerator, value.denominator


def _rational_to_int(value: Any) -> int:
    numerator, denominator = _as_rational(value)
    if denominator == 0:
        raise ZeroDivisionError("zero denominator")
    return int(numerator / denominator)


def _orientation(value: Any, meta: CaptureMetadata) -> None:
    meta.orientation = orientation_label(_as_int(value))


def _software(value: Any, meta: CaptureMetadata) -> None:
    software = _as_str(value)
    meta.software = software
    meta.creator_tool = software


def _modify_date(value: Any, meta: CaptureMetadata) -> None:
    meta.modify_date = _as_str(value)


def _create_date(value: Any, meta: CaptureMetadata) -> None:
    meta.create_date = _as_str(value)


def _x_resolution(value: Any, meta: CaptureMetadata) -> None:
    meta.x_resolution = _rational_to_int(value)


def _y_resolution(value: Any, meta: CaptureMetadata) -> None:
    meta.y_resolution = _rational_to_int(value)


def _resolution_unit(value: Any, meta: CaptureMetadata) -> None:
    meta.resolution_unit = resolution_unit_label(_as_int(value))


def _color_space(value: Any, meta: CaptureMetadata) -> None:
    if _as_int(value) == 1:
        meta.color_space = "sRGB"
        meta.color_mode = "RGB"
    else:
        meta.color_space = "Uncalibrated"


TAG_STEPS: Tuple[Tuple[Base, Callable[[Any, CaptureMetadata], None]], ...] = (
    (Base.Orientation, _orientation),
    (Base.Software, _software),
    (Base.DateTime, _modify_date),
    (Base.DateTimeOriginal, _create_date),
    (Base.XResolution, _x_resolution),
    (Base.YResolution, _y_resolution),
    (Base.ResolutionUnit, _resolution_unit),
    (Base.ColorSpace, _color_space),
)


def collect_tags(primary: Mapping[int, Any], exif_ifd: Optional[Mapping[int, Any]] = None) -> CaptureMetadata:
    """Apply every tag step to the IFD0 and Exif sub-IFD mappings.

    IFD0 wins when a tag appears in both.
    """
    exif_ifd = exif_ifd or {}
    meta = CaptureMetadata()
    for tag, step in TAG_STEPS:
        value = primary.get(tag, exif_ifd.get(tag))
        if value is None:
            continue
        try:
            step(value, meta)
        except (TypeError, ValueError, ZeroDivisionError, AttributeError, IndexError) as e:
            log.debug("Skipping EXIF tag %s: %s", tag.name, e)
    return meta


def extract_exif(data: bytes) -> CaptureMetadata:
    """Extract the known capture tags from raw image bytes. Never raises."""
    fmt = sniff_format(data)
    if fmt is None:
        return CaptureMetadata()

    try:
        with open_header(data, fmt) as img:
            exif = img.getexif()
            primary = dict(exif)
            try:
                exif_ifd = dict(exif.get_ifd(IFD.Exif))
            except Exception as e:
                log.debug("Unreadable Exif sub-IFD: %s", e)
                exif_ifd = {}
    except Exception as e:
        log.debug("No readable EXIF directory: %s", e)
        return CaptureMetadata()

    return collect_tags(primary, exif_ifd)
