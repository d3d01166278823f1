from pydantic import BaseModel


class UploadedImage(BaseModel):
    id: str
    extension: str
    filename: str
    original_filename: str
    stored_path: str
    mime_type: str
    size_bytes: int
    width: int | None = None
    height: int | None = None
    format: str | None = None


class UploadResponse(BaseModel):
    message: str
    url: str


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    status: str
    app_name: str
