import logging

import pytest
from pydantic import ValidationError

from filestream.__main__ import parse_args
from filestream.config import Settings
from filestream.services.chunk_service import ChunkUploadService
from filestream.utils.logger import configure_logging, get_logger


def test_defaults():
    settings = Settings()

    assert settings.UNIQUE_NAME_MODE == "uuid"
    assert settings.STRICT_SIZE_CHECK is False
    assert settings.UPLOAD_DIR_MODE == 0o775
    assert ".jpg" in settings.ALLOWED_EXTENSIONS


def test_extensions_are_normalized():
    settings = Settings(ALLOWED_EXTENSIONS=["JPG", ".PNG", " webp "])

    assert settings.ALLOWED_EXTENSIONS == [".jpg", ".png", ".webp"]


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("APP_PORT", "9090")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
    monkeypatch.setenv("ALLOWED_EXTENSIONS", '[".pdf"]')
    monkeypatch.setenv("UNIQUE_NAME_MODE", "original")

    settings = Settings()

    assert settings.APP_PORT == 9090
    assert settings.UPLOAD_DIR == str(tmp_path)
    assert settings.ALLOWED_EXTENSIONS == [".pdf"]
    assert settings.UNIQUE_NAME_MODE == "original"


def test_invalid_unique_name_mode():
    with pytest.raises(ValidationError):
        Settings(UNIQUE_NAME_MODE="random")


def test_invalid_max_upload_size():
    with pytest.raises(ValidationError):
        Settings(MAX_UPLOAD_SIZE=0)


def test_service_from_settings():
    settings = Settings(UPLOAD_DIR_MODE=0o700, UNIQUE_NAME_MODE="original", STRICT_SIZE_CHECK=True)

    service = ChunkUploadService.from_settings(settings)

    assert service.dir_mode == 0o700
    assert service.unique_name_mode == "original"
    assert service.strict_size_check is True


def test_command_line_flags():
    args = parse_args(["--addr", "8081", "--debug", "--host", "127.0.0.1"])

    assert args.addr == 8081
    assert args.debug is True
    assert args.host == "127.0.0.1"


def test_logging_debug_switch():
    logger = get_logger("main")
    assert logger.name == "filestream.main"

    configure_logging(debug=True)
    assert logger.getEffectiveLevel() == logging.DEBUG

    configure_logging(debug=False)
    assert logger.getEffectiveLevel() == logging.INFO
