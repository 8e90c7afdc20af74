from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Source = Literal["upload", "remote"]

class ImageMetadata(BaseModel):
    """Metadata assembled for one image. Frozen once returned."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    # identity
    file_name: str = ""
    file_size: int = 0
    file_size_human: str = ""
    file_type: str = ""
    file_type_extension: str = ""
    mime_type: str = ""
    source: Source
    uploaded_at: Optional[datetime] = None

    # geometry
    format: str = ""
    width: int = Field(0, ge=0)
    height: int = Field(0, ge=0)
    aspect_ratio: str = ""
    aspect_ratio_fraction: str = ""
    megapixels: float = 0.0

    # capture metadata
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

    # remote fetch
    status: Optional[str] = None
    final_url: Optional[str] = Field(None, alias="finalURL")
    content_length: Optional[int] = None
    last_modified: Optional[str] = None
    downloaded_bytes: Optional[int] = None
    truncated: bool = False
    duration: Optional[str] = None

    # failures
    fetch_error: Optional[str] = None
    decode_error: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return bool(self.fetch_error or self.decode_error)

class URLBatchRequest(BaseModel):
    urls: List[str] = []

class MetadataResponse(BaseModel):
    success: bool
    data: List[ImageMetadata] = []
    errors: Optional[List[str]] = None
    message: Optional[str] = None

class ErrorResponse(BaseModel):
    success: bool = False
    error: str

class UploadResult(BaseModel):
    input_name: str
    blob_id: Optional[str] = None
    blob_url: Optional[str] = None
    metadata: Optional[ImageMetadata] = None
    error: Optional[str] = None

class UploadResponse(BaseModel):
    success: bool
    results: List[UploadResult]
