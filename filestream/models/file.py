from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from filestream.utils.file_utils import is_valid_filename


class ChunkUploadRequest(BaseModel):
    """A single chunk write as handed over by the HTTP layer."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chunk_data: Any = Field(..., description="Readable binary stream holding this chunk")
    original_filename: str = Field(..., description="Name of the file being uploaded")
    declared_total_size: int = Field(..., ge=0, description="Total file size in bytes")
    max_range_so_far: int = Field(..., ge=0, description="Bytes sent so far, including this chunk")
    upload_directory: Path = Field(..., description="Directory holding the uploaded file")
    generate_unique_name: bool = Field(False, description="Produce a unique name on completion")

    @field_validator("chunk_data")
    @classmethod
    def validate_chunk_data(cls, v: Any) -> Any:
        if not callable(getattr(v, "read", None)):
            raise ValueError("chunk_data must be a readable binary stream")
        return v

    @field_validator("original_filename")
    @classmethod
    def validate_original_filename(cls, v: str) -> str:
        if not is_valid_filename(v):
            raise ValueError(f"Invalid filename: {v!r}")
        return v

    @property
    def destination(self) -> Path:
        """Path of the file every chunk of this upload is appended to."""
        return self.upload_directory / self.original_filename

    @property
    def is_complete(self) -> bool:
        return self.max_range_so_far >= self.declared_total_size


class FinalizedFile(BaseModel):
    """Final face of an uploaded file, produced once the last chunk is stored."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field(..., alias="fileName", description="Original uploaded file name")
    file_unique_name: str = Field("", alias="fileUniqueName", description="Generated unique name, empty unless requested")
    file_path: str = Field(..., alias="filePath", description="Path of the uploaded file")
    file_extension: str = Field(..., alias="fileExtension", description="Extension of the original file name")
    file_size: str = Field(..., alias="fileSize", description="Human-readable size of the file on disk")


class ChunkUploadResult(BaseModel):
    """Outcome of one chunk write: either still in progress or a finalized file."""

    completed: bool = False
    file: Optional[FinalizedFile] = None
