from fastapi import APIRouter, Depends, Request, Response
import logging

from metadata_viewer.dependencies.dependencies import get_blob_store
from metadata_viewer.exceptions import APIException, BlobNotFoundException
from metadata_viewer.image_service.models import UploadResponse, UploadResult
from metadata_viewer.image_service.service import process_upload
from metadata_viewer.routers.metadata_api import read_upload, upload_files
from metadata_viewer.settings import settings
from metadata_viewer.storage.blob_store import TransientBlobStore

log = logging.getLogger(__name__)

router = APIRouter(
    tags=["blobs"]
)

@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_images(
    request: Request,
    blobs: TransientBlobStore = Depends(get_blob_store)
):
    """
    Extracts metadata from uploaded files and keeps their bytes for replay.

    Every accepted file is stored in the blob store, even when its header
    could not be decoded, so the client can still display it.
    """
    files = await upload_files(request)
    results = []

    for file in files:
        result = UploadResult(input_name=file.filename or "")
        try:
            data = await read_upload(file)
        except APIException as e:
            results.append(result.model_copy(update={"error": e.detail}))
            continue

        meta = process_upload(data, file.content_type, file.filename)
        update = {"metadata": meta, "error": meta.fetch_error or meta.decode_error}
        if not meta.fetch_error:
            blob_id = blobs.put(data, file.content_type or meta.mime_type)
            update.update(blob_id=blob_id, blob_url=f"/blob/{blob_id}")
        results.append(result.model_copy(update=update))

    return UploadResponse(success=any(r.blob_id for r in results), results=results)

@router.get("/blob/{blob_id}")
def get_blob(
    blob_id: str,
    blobs: TransientBlobStore = Depends(get_blob_store)
):
    """Replays the bytes of a previous upload until its entry expires."""
    entry = blobs.get(blob_id)
    if entry is None:
        raise BlobNotFoundException(blob_id)

    headers = {"Cache-Control": f"private, max-age={settings.blob_cache_max_age}"}
    return Response(content=entry.data, media_type=entry.content_type or None, headers=headers)
