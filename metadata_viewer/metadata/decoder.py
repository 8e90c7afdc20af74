"""Image container sniffing and header decoding."""

import logging
from contextlib import contextmanager
from enum import Enum
from io import BytesIO
from typing import NamedTuple, Optional, Tuple

from PIL import Image

from metadata_viewer.metadata.exceptions import DecodeError, DecodeErrorKind

log = logging.getLogger(__name__)


class ImageFormat(Enum):
    """Supported container formats.

    Each member carries its magic signatures, the Pillow plugin that reads its
    header, the canonical MIME type and the usual file extension.
    """

    JPEG = ("jpeg", (b"\xff\xd8\xff",), "JPEG", "image/jpeg", "jpg")
    PNG = ("png", (b"\x89PNG\r\n\x1a\n",), "PNG", "image/png", "png")
    GIF = ("gif", (b"GIF87a", b"GIF89a"), "GIF", "image/gif", "gif")
    BMP = ("bmp", (b"BM",), "BMP", "image/bmp", "bmp")
    TIFF = ("tiff", (b"II*\x00", b"MM\x00*"), "TIFF", "image/tiff", "tif")
    WEBP = ("webp", (b"RIFF",), "WEBP", "image/webp", "webp")

    def __init__(self, label: str, signatures: Tuple[bytes, ...], pillow_name: str, mime_type: str, extension: str):
        self.label = label
        self.signatures = signatures
        self.pillow_name = pillow_name
        self.mime_type = mime_type
        self.extension = extension

    def matches(self, data: bytes) -> bool:
        if not any(data.startswith(sig) for sig in self.signatures):
            return False
        if self is ImageFormat.WEBP:
            # RIFF is a generic container; the form type must be WEBP
            return data[8:12] == b"WEBP"
        return True

    @classmethod
    def from_label(cls, label: str) -> Optional["ImageFormat"]:
        for fmt in cls:
            if fmt.label == label.lower():
                return fmt
        return None


class DecodedHeader(NamedTuple):
    format: str
    width: int
    height: int


def sniff_format(data: bytes) -> Optional[ImageFormat]:
    """Identify the container from its leading bytes, ignoring any declared type."""
    for fmt in ImageFormat:
        if fmt.matches(data):
            return fmt
    return None


def decode_header(data: bytes) -> DecodedHeader:
    """Read format and pixel geometry without decoding pixel data.

    Raises:
        DecodeError: If ``data`` is empty, unrecognized or has a corrupt header
    """
    if len(data) == 0:
        raise DecodeError(DecodeErrorKind.EMPTY)

    fmt = sniff_format(data)
    if fmt is None:
        raise DecodeError(DecodeErrorKind.UNSUPPORTED_OR_CORRUPT, "unrecognized image format")

    # Image.open only parses the header; pixel planes load lazily and are never touched here
    try:
        width, height = _read_size(data, fmt)
    except Exception as e:
        log.info("Failed to read %s header: %s", fmt.label, e)
        raise DecodeError(DecodeErrorKind.UNSUPPORTED_OR_CORRUPT, f"invalid {fmt.label} header: {e}") from e

    if width <= 0 or height <= 0:
        raise DecodeError(
            DecodeErrorKind.UNSUPPORTED_OR_CORRUPT,
            f"invalid {fmt.label} dimensions {width}x{height}",
        )
    return DecodedHeader(format=fmt.label, width=width, height=height)


@contextmanager
def open_header(data: bytes, fmt: ImageFormat):
    """Open ``data`` lazily as ``fmt``, including headers above Pillow's pixel-count guard."""
    try:
        img = Image.open(BytesIO(data), formats=[fmt.pillow_name])
    except Image.DecompressionBombError:
        # Plugin constructors parse the header without the pixel-count guard
        log.debug("Reading oversized %s header without the pixel-count guard", fmt.label)
        factory, _accept = Image.OPEN[fmt.pillow_name]
        img = factory(BytesIO(data))
    with img:
        yield img


def _read_size(data: bytes, fmt: ImageFormat) -> Tuple[int, int]:
    with open_header(data, fmt) as img:
        return img.size
