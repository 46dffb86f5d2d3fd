"""
Service for reassembling chunked uploads on the local filesystem.

Chunks are appended, in arrival order, to <upload_directory>/<original_filename>.
An upload is finalized once the caller-reported max range reaches the declared
file size. Writes to the same destination are serialized with a per-path lock,
and a finalized destination refuses further chunks until it is cleaned up.
"""

import os
import shutil
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Set, Union

from starlette.concurrency import run_in_threadpool

from filestream.config import Settings
from filestream.models.file import ChunkUploadRequest, ChunkUploadResult, FinalizedFile
from filestream.services.image_service import remove_exif_metadata
from filestream.utils.exceptions import (
    ChunkWriteError,
    DirectoryCreationError,
    FileOpenError,
    FileRemovalError,
    NotFoundError,
    SizeMismatchError,
    StatError,
    UploadAlreadyFinalizedError,
    ValidationException,
)
from filestream.utils.file_utils import (
    get_file_extension,
    is_valid_filename,
    pretty_byte_size,
    unique_name,
)
from filestream.utils.logger import get_logger

logger = get_logger(__name__)


class _PathLock:
    """Lock shared by every caller currently working on one destination path."""

    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class ChunkUploadService:
    """Writes chunks to disk and finalizes completed uploads"""

    def __init__(
        self,
        dir_mode: int = 0o775,
        unique_name_mode: str = "uuid",
        strict_size_check: bool = False,
    ):
        if unique_name_mode not in ("uuid", "original"):
            raise ValueError(f"Unknown unique name mode: {unique_name_mode}")

        self.dir_mode = dir_mode
        self.unique_name_mode = unique_name_mode
        self.strict_size_check = strict_size_check

        self._registry_lock = threading.Lock()
        self._path_locks: Dict[str, _PathLock] = {}
        self._finalized: Set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChunkUploadService":
        return cls(
            dir_mode=settings.UPLOAD_DIR_MODE,
            unique_name_mode=settings.UNIQUE_NAME_MODE,
            strict_size_check=settings.STRICT_SIZE_CHECK,
        )

    @staticmethod
    def _path_key(path: Union[str, Path]) -> str:
        return os.path.realpath(str(path))

    @contextmanager
    def _path_lock(self, key: str) -> Iterator[None]:
        """Hold the lock for one destination path; the entry is dropped when unused."""
        with self._registry_lock:
            entry = self._path_locks.get(key)
            if entry is None:
                entry = self._path_locks[key] = _PathLock()
            entry.holders += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._path_locks[key]

    def is_finalized(self, file_path: Union[str, Path]) -> bool:
        with self._registry_lock:
            return self._path_key(file_path) in self._finalized

    def store_chunk(self, request: ChunkUploadRequest) -> ChunkUploadResult:
        """
        Append one chunk to its destination file and finalize the upload if complete.

        Args:
            request: The chunk and its positional metadata

        Returns:
            ChunkUploadResult, with the finalized file once the upload is complete

        Raises:
            UploadAlreadyFinalizedError: If the destination was already finalized
            DirectoryCreationError: If the upload directory could not be created
            FileOpenError: If the destination could not be opened
            ChunkWriteError: If copying the chunk failed (written bytes are kept)
            StatError: If the finalized file could not be stat'ed
            SizeMismatchError: If strict size checking is on and sizes differ
        """
        file_path = request.destination
        key = self._path_key(file_path)

        with self._path_lock(key):
            if key in self._finalized:
                logger.warning(f"Rejected chunk for already finalized upload: {file_path}")
                raise UploadAlreadyFinalizedError(file_path)

            self.ensure_directory(request.upload_directory)
            written = self._append_chunk(file_path, request.chunk_data)
            logger.debug(
                f"Stored {written} bytes for {request.original_filename} "
                f"({request.max_range_so_far}/{request.declared_total_size})"
            )

            result = self.finalize(request, file_path)
            if result.completed:
                with self._registry_lock:
                    self._finalized.add(key)

        return result

    async def store_chunk_async(self, request: ChunkUploadRequest) -> ChunkUploadResult:
        """Run store_chunk in the thread pool so the event loop is never blocked."""
        return await run_in_threadpool(self.store_chunk, request)

    def ensure_directory(self, directory: Union[str, Path]) -> None:
        """Create the directory and missing parents with dir_mode, whatever the umask."""
        if os.path.isdir(directory):
            return

        # makedirs applies the umask, and only to the leaf
        missing = []
        current = os.path.abspath(directory)
        while not os.path.isdir(current):
            missing.append(current)
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent

        try:
            os.makedirs(directory, mode=self.dir_mode, exist_ok=True)
            for created in reversed(missing):
                os.chmod(created, self.dir_mode)
        except OSError as e:
            logger.error(f"Failed to create upload directory {directory}: {str(e)}")
            raise DirectoryCreationError(directory, e) from e

        logger.info(f"Created upload directory: {directory}")

    def _append_chunk(self, file_path: Path, chunk_data: BinaryIO) -> int:
        try:
            f = open(file_path, "ab")
        except OSError as e:
            logger.error(f"Error opening file {file_path}: {str(e)}")
            raise FileOpenError(file_path, e) from e

        try:
            start = f.tell()
            shutil.copyfileobj(chunk_data, f)
            f.flush()
            return f.tell() - start
        except (OSError, ValueError) as e:
            logger.error(f"Failed to copy chunk into {file_path}: {str(e)}")
            raise ChunkWriteError(file_path, e) from e
        finally:
            try:
                f.close()
            except OSError as e:
                logger.warning(f"Error closing file {file_path}: {str(e)}")

    def finalize(self, request: ChunkUploadRequest, file_path: Path) -> ChunkUploadResult:
        """
        Decide whether the upload is complete and build its final description.

        Completion is a plain comparison of the reported max range with the
        declared size; a max range beyond the declared size still finalizes
        with whatever bytes are on disk.

        Args:
            request: The chunk request that was just written
            file_path: Path the chunk was appended to

        Returns:
            ChunkUploadResult with completed=False while chunks are still expected
        """
        if not request.is_complete:
            return ChunkUploadResult(completed=False)

        try:
            size = os.stat(file_path).st_size
        except OSError as e:
            logger.error(f"Failed to stat file {file_path}: {str(e)}")
            raise StatError(file_path, e) from e

        if self.strict_size_check and size != request.declared_total_size:
            logger.warning(
                f"Size mismatch for {file_path}: declared {request.declared_total_size}, actual {size}"
            )
            raise SizeMismatchError(file_path, request.declared_total_size, size)

        finalized = FinalizedFile(
            file_name=request.original_filename,
            file_unique_name=self._unique_name_for(request),
            file_path=str(file_path),
            file_extension=get_file_extension(request.original_filename),
            file_size=pretty_byte_size(size),
        )

        logger.info(f"Finalized upload {finalized.file_path} ({finalized.file_size})")
        return ChunkUploadResult(completed=True, file=finalized)

    def _unique_name_for(self, request: ChunkUploadRequest) -> str:
        if not request.generate_unique_name:
            return ""
        if self.unique_name_mode == "original":
            return request.original_filename
        return unique_name(request.original_filename)

    def remove_uploaded_file(self, upload_dir: Union[str, Path], filename: str) -> None:
        """
        Remove an uploaded file from the upload directory.

        Args:
            upload_dir: Directory the file was uploaded to
            filename: Name of the uploaded file

        Raises:
            ValidationException: If filename is not a bare file name
            NotFoundError: If the file does not exist
            FileRemovalError: If the file exists but could not be removed
        """
        if not is_valid_filename(filename):
            raise ValidationException("Invalid filename", details={"filename": filename})

        file_path = Path(upload_dir) / filename
        key = self._path_key(file_path)

        with self._path_lock(key):
            try:
                os.remove(file_path)
            except FileNotFoundError as e:
                with self._registry_lock:
                    self._finalized.discard(key)
                raise NotFoundError(file_path, e) from e
            except OSError as e:
                logger.error(f"Error deleting file {file_path}: {str(e)}")
                raise FileRemovalError(file_path, e) from e

            with self._registry_lock:
                self._finalized.discard(key)

        logger.info(f"Deleted file: {file_path}")

    def discard_uploaded_file(self, upload_dir: Union[str, Path], filename: str) -> bool:
        """
        Remove an uploaded file, logging instead of raising on failure.

        Returns:
            True if the file was removed, False otherwise
        """
        try:
            self.remove_uploaded_file(upload_dir, filename)
            return True
        except NotFoundError:
            logger.warning(f"Cannot delete non-existent file: {filename} in {upload_dir}")
        except (ValidationException, FileRemovalError) as e:
            logger.error(f"Could not discard {filename} in {upload_dir}: {e}")
        return False

    async def remove_uploaded_file_async(self, upload_dir: Union[str, Path], filename: str) -> None:
        await run_in_threadpool(self.remove_uploaded_file, upload_dir, filename)


    def strip_metadata(self, file_path: Union[str, Path]) -> None:
        """
        Remove image metadata from an uploaded file.

        The re-encoded image replaces the file, so this holds the same path
        lock as chunk writes and cleanup.

        Raises:
            NotFoundError: If the file does not exist
            DecodeError: If the file is not a decodable image
            CreateError: If the replacement file cannot be created or swapped in
            EncodeError: If re-encoding fails
        """
        with self._path_lock(self._path_key(file_path)):
            remove_exif_metadata(file_path)

    async def strip_metadata_async(self, file_path: Union[str, Path]) -> None:
        await run_in_threadpool(self.strip_metadata, file_path)
