from posixpath import basename, splitext
from typing import Optional
from urllib.parse import SplitResult


def normalize_url(raw: str) -> str:
    """Repair single-slash schemes (``https:/host``) left by path-based input."""
    normalized = raw.strip()
    for scheme in ("http", "https"):
        single = f"{scheme}:/"
        if normalized.startswith(single) and not normalized.startswith(f"{scheme}://"):
            return f"{scheme}://" + normalized[len(single):]
    return normalized


def extension_from_name(name: Optional[str]) -> str:
    """Lower-case extension without the dot, empty if there is none."""
    if not name:
        return ""
    return splitext(name)[1].lower().lstrip(".")


def file_name_from_url(parsed: Optional[SplitResult]) -> str:
    if parsed is None:
        return ""
    return basename(parsed.path.rstrip("/"))


def content_type_base(content_type: Optional[str]) -> str:
    """Media type without parameters, e.g. ``image/png; q=1`` -> ``image/png``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip()


def format_to_extension(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "jpeg":
        return "jpg"
    if fmt == "tiff":
        return "tif"
    return fmt
