from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging

from metadata_viewer.metadata.fetcher import BoundedFetcher
from metadata_viewer.storage.blob_store import TransientBlobStore
from metadata_viewer.settings import settings
from metadata_viewer.routers.metadata_api import router as metadata_router
from metadata_viewer.routers.blobs import router as blob_router
from metadata_viewer.exceptions import add_exception_handlers

logging.basicConfig(level=settings.log_level.upper())
log = logging.getLogger("image-metadata-viewer")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Initializes and closes resources (HTTP client, blob store) for the application.
    """
    # Initialize resources
    app.state.fetcher = BoundedFetcher(
        timeout=settings.fetch_timeout_seconds,
        user_agent=settings.user_agent,
    )
    app.state.blobs = TransientBlobStore(
        ttl_seconds=settings.blob_ttl_seconds,
        sweep_interval_seconds=settings.blob_sweep_interval_seconds,
    )
    yield
    # Cleanup resources
    await app.state.fetcher.aclose()
    app.state.blobs.close()

# Initialize App
app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    description="Image Metadata Viewer",
)

# Add exception handlers
add_exception_handlers(app)

# CORS - Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add the routers
app.include_router(metadata_router)
app.include_router(blob_router)

# Check Health
@app.get("/")
def read_root():
    """
        Default end point

    """
    return "Image Metadata Viewer is running."

if __name__ == "__main__":
    uvicorn.run("metadata_viewer.main:app", host="0.0.0.0", port=8080, reload=True)
