"""
Tests for the exception hierarchy and its conversion to API errors
"""

import io

import pytest
from pydantic import ValidationError

from filestream.models.file import ChunkUploadRequest
from filestream.utils.error_handler import error_body, to_api_exception
from filestream.utils.exceptions import (
    BaseAPIException,
    ChunkWriteError,
    DecodeError,
    FileProcessingException,
    InternalServerException,
    NotFoundError,
    NotFoundException,
    UploadAlreadyFinalizedError,
    ValidationException,
)


@pytest.mark.parametrize(
    "exception, status_code, code",
    [
        (ChunkWriteError("/tmp/a", OSError("boom")), 500, "CHUNK_WRITE_ERROR"),
        (DecodeError("/tmp/a.jpg"), 422, "DECODE_ERROR"),
        (NotFoundError("/tmp/a"), 404, "NOT_FOUND"),
        (UploadAlreadyFinalizedError("/tmp/a"), 409, "UPLOAD_ALREADY_FINALIZED"),
    ],
)
def test_domain_exceptions(exception, status_code, code):
    assert isinstance(exception, BaseAPIException)
    assert exception.status_code == status_code
    assert exception.code == code
    assert exception.detail["code"] == code
    assert exception.details["path"].startswith("/tmp/a")


def test_io_error_details_keep_cause():
    error = ChunkWriteError("/tmp/a", OSError("boom"))

    assert isinstance(error, FileProcessingException)
    assert error.details == {"path": "/tmp/a", "error": "boom"}
    assert str(error) == "CHUNK_WRITE_ERROR: Failed to write chunk"


def test_not_found_error_is_not_found_exception():
    assert isinstance(NotFoundError("/tmp/a"), NotFoundException)


def test_to_api_exception_passes_through_api_errors():
    error = NotFoundError("/tmp/a")
    assert to_api_exception(error, "cleanup") is error


def test_to_api_exception_maps_validation_errors(tmp_path):
    with pytest.raises(ValidationError) as exc_info:
        ChunkUploadRequest(
            chunk_data=io.BytesIO(b""),
            original_filename="../x",
            declared_total_size=1,
            max_range_so_far=1,
            upload_directory=tmp_path,
        )

    converted = to_api_exception(exc_info.value, "validating chunk")

    assert isinstance(converted, ValidationException)
    assert converted.status_code == 422
    assert converted.details["errors"]


def test_to_api_exception_maps_unknown_errors():
    converted = to_api_exception(RuntimeError("surprise"), "storing chunk")

    assert isinstance(converted, InternalServerException)
    assert converted.details == {"exception_type": "RuntimeError"}


def test_error_body():
    assert error_body("NOT_FOUND", "missing") == {
        "error": {"code": "NOT_FOUND", "message": "missing", "details": {}}
    }
