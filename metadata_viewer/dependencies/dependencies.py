from fastapi import Request
from metadata_viewer.metadata.fetcher import BoundedFetcher
from metadata_viewer.storage.blob_store import TransientBlobStore

def get_fetcher(request: Request) -> BoundedFetcher:
    """Dependency provider for BoundedFetcher"""
    return request.app.state.fetcher

def get_blob_store(request: Request) -> TransientBlobStore:
    """Dependency provider for TransientBlobStore"""
    return request.app.state.blobs
