"""
Standardized exception hierarchy for filestream.
Every storage failure is raised as one of these so the HTTP layer can render
a consistent error body without inspecting raw OSErrors.
"""

from typing import Any, Dict, Optional, Union
from pathlib import Path

from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception for all API errors with standardized format"""
    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        # Format the detail dict in a consistent way
        detail = {
            "code": code,
            "message": message
        }
        if details:
            detail["details"] = details

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# 4xx Client Error Exceptions

class NotFoundException(BaseAPIException):
    """404 Not Found"""
    def __init__(self, message: str = "Resource not found", details: Any = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message=message,
            details=details
        )


class ValidationException(BaseAPIException):
    """422 Validation Error"""
    def __init__(self, message: str = "Validation error", details: Any = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            message=message,
            details=details
        )


class ProcessingError(BaseAPIException):
    """422 Processing Error"""
    def __init__(
        self,
        message: str = "Error processing request",
        code: str = "PROCESSING_ERROR",
        details: Any = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code=code,
            message=message,
            details=details
        )


class ConflictException(BaseAPIException):
    """409 Conflict"""
    def __init__(
        self,
        message: str = "Resource conflict",
        code: str = "CONFLICT",
        details: Any = None
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code=code,
            message=message,
            details=details
        )


# 5xx Server Error Exceptions

class InternalServerException(BaseAPIException):
    """500 Internal Server Error"""
    def __init__(self, message: str = "Internal server error", details: Any = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="INTERNAL_ERROR",
            message=message,
            details=details
        )


class FileProcessingException(BaseAPIException):
    """Exception raised when there's an error processing files"""
    def __init__(
        self,
        message: str = "File processing error",
        code: str = "FILE_PROCESSING_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code=code,
            message=message,
            details=details
        )


def _io_details(path: Union[str, Path], error: Optional[BaseException]) -> Dict[str, Any]:
    details: Dict[str, Any] = {"path": str(path)}
    if error is not None:
        details["error"] = str(error)
    return details


# Storage domain exceptions

class DirectoryCreationError(FileProcessingException):
    """The upload directory could not be created"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to create upload directory",
            code="DIRECTORY_CREATION_ERROR",
            details=_io_details(path, error)
        )


class FileOpenError(FileProcessingException):
    """The destination file could not be opened for appending"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to open destination file",
            code="FILE_OPEN_ERROR",
            details=_io_details(path, error)
        )


class ChunkWriteError(FileProcessingException):
    """Copying chunk bytes into the destination file failed"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to write chunk",
            code="CHUNK_WRITE_ERROR",
            details=_io_details(path, error)
        )


class StatError(FileProcessingException):
    """The finalized file could not be stat'ed"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to stat uploaded file",
            code="STAT_ERROR",
            details=_io_details(path, error)
        )


class FileRemovalError(FileProcessingException):
    """An existing upload could not be removed"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to remove uploaded file",
            code="FILE_REMOVAL_ERROR",
            details=_io_details(path, error)
        )


class CreateError(FileProcessingException):
    """The re-encoded image could not be created in place of the original"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to create output file",
            code="CREATE_ERROR",
            details=_io_details(path, error)
        )


class EncodeError(FileProcessingException):
    """Re-encoding the image failed"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to encode image",
            code="ENCODE_ERROR",
            details=_io_details(path, error)
        )


class DecodeError(ProcessingError):
    """The file is not an image Pillow can decode"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Failed to decode image",
            code="DECODE_ERROR",
            details=_io_details(path, error)
        )


class NotFoundError(NotFoundException):
    """404 Uploaded file not found - raised by cleanup"""
    def __init__(self, path: Union[str, Path], error: Optional[BaseException] = None):
        super().__init__(
            message="Uploaded file not found",
            details=_io_details(path, error)
        )


class UploadAlreadyFinalizedError(ConflictException):
    """A chunk arrived for a destination that has already been finalized"""
    def __init__(self, path: Union[str, Path]):
        super().__init__(
            message="Upload already finalized",
            code="UPLOAD_ALREADY_FINALIZED",
            details={"path": str(path)}
        )


class SizeMismatchError(ValidationException):
    """The on-disk size does not match the declared total size"""
    def __init__(self, path: Union[str, Path], declared: int, actual: int):
        super().__init__(
            message="Uploaded size does not match declared file size",
            details={"path": str(path), "declared": declared, "actual": actual}
        )


class IdentifierGenerationFailure(RuntimeError):
    """
    The unique identifier source could not produce a value.

    This is a process-level failure, not a per-request error: nothing in
    filestream catches it and callers must not rely on partial results.
    """
