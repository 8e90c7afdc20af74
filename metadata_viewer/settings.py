from pydantic_settings import BaseSettings
from pydantic import Field

MIB = 1 << 20

class Settings(BaseSettings):
    app_title: str = Field("Image Metadata Viewer", env="APP_TITLE")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # Content ceiling for remote fetches and uploaded files
    max_image_bytes: int = Field(20 * MIB, env="MAX_IMAGE_BYTES")
    # Per-file upload ceiling, 1 MiB above the content ceiling for multipart overhead
    max_upload_bytes: int = Field(21 * MIB, env="MAX_UPLOAD_BYTES")

    fetch_timeout_seconds: float = Field(15.0, env="FETCH_TIMEOUT_SECONDS")
    user_agent: str = Field("image-metadata-viewer/2.0", env="USER_AGENT")

    blob_ttl_seconds: int = Field(3600, env="BLOB_TTL_SECONDS")
    blob_sweep_interval_seconds: int = Field(600, env="BLOB_SWEEP_INTERVAL_SECONDS")
    blob_cache_max_age: int = Field(3600, env="BLOB_CACHE_MAX_AGE")

    class Config:
        env_file = ".env"
        extra = "allow"  # tolerate unknown vars if needed

settings = Settings()
