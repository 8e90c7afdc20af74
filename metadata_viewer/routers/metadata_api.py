from fastapi import APIRouter, Depends, Request, UploadFile
from pydantic import ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile
from typing import List, Optional
from urllib.parse import urlsplit
import logging

from metadata_viewer.dependencies.dependencies import get_fetcher
from metadata_viewer.exceptions import (
    APIException,
    InvalidRequestException,
    InvalidURLException,
    RemoteFetchException,
)
from metadata_viewer.image_service.models import ImageMetadata, MetadataResponse, URLBatchRequest
from metadata_viewer.image_service.service import process_many, process_remote, process_upload
from metadata_viewer.metadata.fetcher import BoundedFetcher
from metadata_viewer.settings import settings
from metadata_viewer.utils.helpers import normalize_url

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["metadata"]
)

def validate_image_url(raw: str, query: Optional[str] = None) -> str:
    """Normalizes a path-supplied URL and checks it is absolute http(s)."""
    if not raw:
        raise InvalidURLException("URL parameter is required")
    image_url = normalize_url(raw)
    if query:
        image_url = f"{image_url}?{query}"
    try:
        parsed = urlsplit(image_url)
    except ValueError:
        raise InvalidURLException("Invalid URL format")
    if not parsed.scheme or not parsed.netloc:
        raise InvalidURLException("Invalid URL format")
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLException("Only http and https URLs are supported")
    return parsed.geturl()

async def read_upload(file: UploadFile) -> bytes:
    """Reads an uploaded file, enforcing the per-file upload ceiling."""
    limit = settings.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise InvalidRequestException("file exceeds size limit")
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise InvalidRequestException("file exceeds size limit")
    if not data:
        raise InvalidRequestException("file is empty")
    return data

async def upload_files(request: Request) -> List[UploadFile]:
    try:
        form = await request.form()
    except Exception:
        raise InvalidRequestException("Could not parse multipart form")
    files = [f for f in form.getlist("files") if isinstance(f, StarletteUploadFile)]
    if not files:
        raise InvalidRequestException("No files provided")
    return files

@router.get("/{target:path}", response_model=MetadataResponse, response_model_exclude_none=True)
async def get_metadata(
    target: str,
    request: Request,
    fetcher: BoundedFetcher = Depends(get_fetcher)
):
    """Returns metadata for the image at the URL given in the path."""
    image_url = validate_image_url(target, request.url.query)
    meta = await process_remote(fetcher, image_url)
    if meta.fetch_error:
        raise RemoteFetchException(meta.fetch_error)
    return MetadataResponse(success=True, data=[meta])

@router.post("", response_model=MetadataResponse, response_model_exclude_none=True)
async def post_metadata(
    request: Request,
    fetcher: BoundedFetcher = Depends(get_fetcher)
):
    """
    Returns metadata for several images.

    Accepts either a JSON body ``{"urls": [...]}`` or a multipart form with
    one or more ``files`` parts.
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        return await _metadata_for_uploads(request)
    if "application/json" in content_type:
        return await _metadata_for_urls(request, fetcher)
    raise InvalidRequestException("Content-Type must be application/json or multipart/form-data")

async def _metadata_for_urls(request: Request, fetcher: BoundedFetcher) -> MetadataResponse:
    try:
        payload = URLBatchRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        raise InvalidRequestException("Invalid JSON payload")
    if not payload.urls:
        raise InvalidRequestException("No URLs provided")

    errors: List[str] = []
    valid_urls: List[str] = []
    for raw in payload.urls:
        try:
            valid_urls.append(validate_image_url(raw.strip()))
        except InvalidURLException:
            errors.append(f"Invalid URL: {raw}")

    results = await process_many(fetcher, valid_urls)
    for url, meta in zip(valid_urls, results):
        if meta.fetch_error:
            errors.append(f"{url}: {meta.fetch_error}")

    return MetadataResponse(success=len(results) > 0, data=results, errors=errors or None)

async def _metadata_for_uploads(request: Request) -> MetadataResponse:
    files = await upload_files(request)
    results: List[ImageMetadata] = []
    errors: List[str] = []

    for file in files:
        try:
            data = await read_upload(file)
        except APIException as e:
            errors.append(f"{file.filename}: {e.detail}")
            continue
        meta = process_upload(data, file.content_type, file.filename)
        if meta.fetch_error:
            errors.append(f"{file.filename}: {meta.fetch_error}")
            continue
        if meta.decode_error:
            errors.append(f"{file.filename}: decode error: {meta.decode_error}")
            continue
        results.append(meta)

    if not results:
        raise InvalidRequestException("No valid images processed")
    return MetadataResponse(success=True, data=results, errors=errors or None)
