"""
    Centralized exception handling for the FastAPI application.
"""
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class BlobNotFoundException(APIException):
    """Exception for when a stored upload is unknown or expired."""
    def __init__(self, blob_id: str):
        super().__init__(status_code=404, detail=f"Blob with ID '{blob_id}' not found.")

class InvalidURLException(APIException):
    """Exception for malformed or unsupported image URLs."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class InvalidRequestException(APIException):
    """Exception for unusable request payloads."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class RemoteFetchException(APIException):
    """Exception for remote images that could not be fetched."""
    def __init__(self, detail: str):
        super().__init__(status_code=502, detail=detail)

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    log.error(f"API Exception: {exc.detail}")
    return error_response(exc.status_code, exc.detail)

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}")
    return error_response(exc.status_code, str(exc.detail))

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return error_response(500, "Internal Server Error")

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
