"""
API endpoints for chunked file uploads.
"""

import os
import re
from pathlib import Path
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, Header, Request, UploadFile
from pydantic import ValidationError

from filestream.config import Settings
from filestream.models.file import ChunkUploadRequest, ChunkUploadResult
from filestream.services.chunk_service import ChunkUploadService
from filestream.utils.error_handler import to_api_exception
from filestream.utils.exceptions import (
    CreateError,
    DecodeError,
    EncodeError,
    StatError,
    ValidationException,
)
from filestream.utils.file_utils import (
    get_file_extension,
    is_allow_extension,
    is_valid_filename,
    pretty_byte_size,
)
from filestream.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

CONTENT_RANGE_PATTERN = re.compile(r"^bytes (\d+)-(\d+)/(\d+)$")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_upload_service(request: Request) -> ChunkUploadService:
    return request.app.state.upload_service


def parse_content_range(header: str) -> Tuple[int, int]:
    """
    Parse a Content-Range header into (max_range, total_size).

    Args:
        header: Header value such as "bytes 0-1023/4096"

    Returns:
        Tuple of the exclusive end offset and the total size

    Raises:
        ValidationException: If the header is malformed
    """
    match = CONTENT_RANGE_PATTERN.match(header.strip())
    if not match:
        raise ValidationException(
            "Invalid Content-Range header",
            details={"contentRange": header},
        )

    start, end, total = (int(group) for group in match.groups())
    if start > end:
        raise ValidationException(
            "Invalid Content-Range header",
            details={"contentRange": header},
        )

    return end + 1, total


def resolve_range(
    max_range: Optional[int],
    file_size: Optional[int],
    content_range: Optional[str],
) -> Tuple[int, int]:
    """Pick the chunk position from the form fields, falling back to Content-Range"""
    if max_range is not None and file_size is not None:
        return max_range, file_size

    if content_range:
        return parse_content_range(content_range)

    raise ValidationException(
        "Missing chunk range",
        details={"required": ["maxRange", "fileSize"], "or": "Content-Range"},
    )


async def strip_finalized_image(
    service: ChunkUploadService, result: ChunkUploadResult
) -> ChunkUploadResult:
    """
    Remove image metadata from a finalized upload and refresh its size.

    The upload is already finalized, so a file that cannot be re-encoded is
    reported as uploaded, with its metadata intact.
    """
    try:
        await service.strip_metadata_async(result.file.file_path)
    except (DecodeError, EncodeError, CreateError) as e:
        logger.warning(f"Kept metadata of {result.file.file_path}: {e}")
        return result

    try:
        size = os.stat(result.file.file_path).st_size
    except OSError as e:
        raise StatError(result.file.file_path, e) from e

    stripped = result.file.model_copy(update={"file_size": pretty_byte_size(size)})
    return ChunkUploadResult(completed=True, file=stripped)


@router.post("/chunk")
async def upload_chunk(
    file: UploadFile = File(...),
    maxRange: Optional[int] = Form(None),
    fileSize: Optional[int] = Form(None),
    uniqueName: Optional[bool] = Form(None),
    content_range: Optional[str] = Header(None, alias="Content-Range"),
    settings: Settings = Depends(get_app_settings),
    service: ChunkUploadService = Depends(get_upload_service),
):
    """
    Upload a single chunk of a file.

    Args:
        file: The chunk data, named after the file being uploaded
        maxRange: Bytes sent so far, including this chunk
        fileSize: Total size of the file in bytes
        uniqueName: Whether to generate a unique name on completion
        content_range: Alternative to maxRange/fileSize, e.g. "bytes 0-1023/4096"

    Returns:
        {"completed": false} while chunks are expected, otherwise the finalized file
    """
    filename = file.filename or ""
    if not is_allow_extension(settings.ALLOWED_EXTENSIONS, filename):
        raise ValidationException(
            "File type not allowed",
            details={"filename": filename, "allowed": settings.ALLOWED_EXTENSIONS},
        )

    max_range, total_size = resolve_range(maxRange, fileSize, content_range)

    if total_size > settings.MAX_UPLOAD_SIZE:
        raise ValidationException(
            "File too large",
            details={"fileSize": total_size, "maxUploadSize": settings.MAX_UPLOAD_SIZE},
        )

    try:
        request = ChunkUploadRequest(
            chunk_data=file.file,
            original_filename=filename,
            declared_total_size=total_size,
            max_range_so_far=max_range,
            upload_directory=Path(settings.UPLOAD_DIR),
            generate_unique_name=settings.GENERATE_UNIQUE_NAME if uniqueName is None else uniqueName,
        )
    except ValidationError as e:
        raise to_api_exception(e, "validating chunk") from e

    result = await service.store_chunk_async(request)

    if (
        result.completed
        and settings.STRIP_IMAGE_METADATA
        and get_file_extension(filename).lower() in settings.IMAGE_EXTENSIONS
    ):
        result = await strip_finalized_image(service, result)

    if result.completed:
        logger.info(f"Upload completed: {result.file.file_name} ({result.file.file_size})")

    return result.model_dump(by_alias=True)


@router.delete("/{filename}")
async def delete_upload(
    filename: str,
    settings: Settings = Depends(get_app_settings),
    service: ChunkUploadService = Depends(get_upload_service),
):
    """Remove an uploaded file from the upload directory"""
    await service.remove_uploaded_file_async(settings.UPLOAD_DIR, filename)
    return {"deleted": True, "fileName": filename}


@router.post("/{filename}/strip-metadata")
async def strip_metadata(
    filename: str,
    settings: Settings = Depends(get_app_settings),
    service: ChunkUploadService = Depends(get_upload_service),
):
    """Re-encode an uploaded image without its metadata"""
    if not is_valid_filename(filename):
        raise ValidationException("Invalid filename", details={"filename": filename})

    file_path = Path(settings.UPLOAD_DIR) / filename
    await service.strip_metadata_async(file_path)

    return {
        "fileName": filename,
        "filePath": str(file_path),
        "fileSize": pretty_byte_size(file_path.stat().st_size),
    }
