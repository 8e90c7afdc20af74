import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit
import logging

from metadata_viewer.image_service.models import ImageMetadata
from metadata_viewer.metadata.decoder import ImageFormat, decode_header
from metadata_viewer.metadata.exceptions import DecodeError, EmptyBodyError, FetchError, HTTPStatusError
from metadata_viewer.metadata.exif import extract_exif
from metadata_viewer.metadata.fetcher import BoundedFetcher, parse_content_length
from metadata_viewer.metadata.metrics import (
    aspect_ratio_decimal,
    aspect_ratio_fraction,
    format_duration,
    human_bytes,
    megapixels,
)
from metadata_viewer.settings import settings
from metadata_viewer.utils.helpers import (
    content_type_base,
    extension_from_name,
    file_name_from_url,
    format_to_extension,
)

log = logging.getLogger(__name__)

def process_upload(
    data: bytes,
    content_type: Optional[str],
    file_name: Optional[str],
    max_bytes: Optional[int] = None,
) -> ImageMetadata:
    """Builds the metadata record for uploaded bytes. Never raises for bad input."""
    if max_bytes is None:
        max_bytes = settings.max_image_bytes
    fields = _identity("upload", file_name, content_type)
    _describe_bytes(fields, data)

    if not data:
        return _fetch_failed(fields, EmptyBodyError("file is empty"))
    if len(data) > max_bytes:
        return _fetch_failed(fields, FetchError("file exceeds size limit"))

    return _decode_and_enrich(fields, data)

async def process_remote(
    fetcher: BoundedFetcher,
    url: str,
    max_bytes: Optional[int] = None,
) -> ImageMetadata:
    """Fetches ``url`` and builds its metadata record. Never raises for bad input.

    Fetch and decode failures are reported on the record, not raised.
    """
    if max_bytes is None:
        max_bytes = settings.max_image_bytes
    fields = _identity("remote", None, None)

    try:
        parsed = urlsplit(url.strip())
    except ValueError as e:
        return _fetch_failed(fields, FetchError(f"invalid URL: {e}"))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return _fetch_failed(fields, FetchError(f"invalid URL: {url!r}"))

    file_name = file_name_from_url(parsed)
    fields.update(
        final_url=parsed.geturl(),
        file_name=file_name,
        file_type_extension=extension_from_name(file_name),
    )

    try:
        result = await fetcher.fetch(parsed.geturl(), max_bytes)
    except HTTPStatusError as e:
        fields.update(_response_fields(e.status, e.headers))
        return _fetch_failed(fields, e)
    except FetchError as e:
        return _fetch_failed(fields, e)

    fields.update(_response_fields(result.status, result.headers))
    fields.update(
        downloaded_bytes=len(result.data),
        truncated=result.truncated,
        duration=format_duration(result.elapsed),
    )
    _describe_bytes(fields, result.data)

    if not result.data:
        return _fetch_failed(fields, EmptyBodyError("empty response", result.elapsed))

    return _decode_and_enrich(fields, result.data)

async def process_many(
    fetcher: BoundedFetcher,
    urls: List[str],
    max_bytes: Optional[int] = None,
) -> List[ImageMetadata]:
    """Processes each URL independently and concurrently, preserving input order."""
    return list(await asyncio.gather(*(process_remote(fetcher, url, max_bytes) for url in urls)))

def _identity(source: str, file_name: Optional[str], content_type: Optional[str]) -> Dict[str, Any]:
    return {
        "source": source,
        "file_name": file_name or "",
        "file_type_extension": extension_from_name(file_name),
        "mime_type": content_type_base(content_type),
        "uploaded_at": datetime.now(timezone.utc),
    }

def _describe_bytes(fields: Dict[str, Any], data: bytes):
    fields["file_size"] = len(data)
    fields["file_size_human"] = human_bytes(len(data))

def _response_fields(status: str, headers: Mapping[str, str]) -> Dict[str, Any]:
    return {
        "status": status,
        "mime_type": content_type_base(headers.get("content-type")),
        "content_length": parse_content_length(headers.get("content-length")),
        "last_modified": headers.get("last-modified") or None,
    }

def _fetch_failed(fields: Dict[str, Any], error: FetchError) -> ImageMetadata:
    log.warning("Fetch failed for %s: %s", fields.get("final_url") or fields.get("file_name") or "<upload>", error.message)
    fields["fetch_error"] = error.message
    if error.elapsed is not None:
        fields["duration"] = format_duration(error.elapsed)
    return ImageMetadata(**fields)

def _decode_and_enrich(fields: Dict[str, Any], data: bytes) -> ImageMetadata:
    try:
        header = decode_header(data)
    except DecodeError as e:
        log.info("Decode failed for %s: %s", fields.get("file_name") or "<unnamed>", e)
        fields["decode_error"] = str(e)
        return ImageMetadata(**fields)

    fields.update(
        format=header.format,
        file_type=header.format.upper(),
        width=header.width,
        height=header.height,
        aspect_ratio=aspect_ratio_decimal(header.width, header.height),
        aspect_ratio_fraction=aspect_ratio_fraction(header.width, header.height),
        megapixels=megapixels(header.width, header.height),
    )
    if not fields.get("file_type_extension"):
        fields["file_type_extension"] = format_to_extension(header.format)
    if not fields.get("mime_type"):
        fields["mime_type"] = ImageFormat.from_label(header.format).mime_type

    fields.update(extract_exif(data).as_dict())
    log.info("Extracted metadata for %s (%s %dx%d)", fields.get("file_name") or "<unnamed>", header.format, header.width, header.height)
    return ImageMetadata(**fields)
