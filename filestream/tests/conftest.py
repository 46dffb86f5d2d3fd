import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from filestream.config import Settings
from filestream.main import create_app
from filestream.services.chunk_service import ChunkUploadService


@pytest.fixture
def upload_dir(tmp_path):
    """Upload directory that does not exist yet, as on a fresh server"""
    return tmp_path / "uploads"


@pytest.fixture
def service():
    return ChunkUploadService()


@pytest.fixture
def settings(upload_dir):
    return Settings(
        UPLOAD_DIR=str(upload_dir),
        ALLOWED_EXTENSIONS=[".txt", ".jpg", ".jpeg", ".png"],
        GENERATE_UNIQUE_NAME=False,
    )


@pytest.fixture
def test_client(settings):
    """Create a test client bound to a temporary upload directory."""
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture
def make_image_bytes():
    """Factory encoding a blank image, optionally carrying EXIF data"""
    def _make(size=(100, 100), image_format="JPEG", mode="RGB", exif=None):
        img = Image.new(mode, size, color="red" if mode != "RGBA" else (255, 0, 0, 128))
        buffer = io.BytesIO()
        params = {}
        if exif is not None:
            params["exif"] = exif.tobytes()
        img.save(buffer, format=image_format, **params)
        return buffer.getvalue()

    return _make
