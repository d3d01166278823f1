from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Image Host"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    upload_dir: str = "uploads"
    max_file_size: int = Field(default=5 * 1024 * 1024, ge=1)
    allowed_mime_types: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES))
    multipart_overhead: int = Field(default=64 * 1024, ge=0)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def upload_path(self) -> Path:
        path = Path(self.upload_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def max_file_size_mb(self) -> str:
        return f"{self.max_file_size / (1024 * 1024):g}"


settings = Settings()
