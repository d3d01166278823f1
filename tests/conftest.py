"""Shared fixtures: every test gets its own upload directory."""
import io
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from imagehost.config import Settings
from imagehost.main import create_app


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(upload_dir=str(tmp_path / "uploads"), log_level="DEBUG")


@pytest.fixture
def upload_dir(settings: Settings) -> Path:
    return settings.upload_path


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))


def make_image(fmt: str = "JPEG", size: tuple[int, int] = (128, 128)) -> bytes:
    """Encode a noisy RGB image so the payload is not trivially small."""
    image = Image.effect_noise(size, 64).convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()
