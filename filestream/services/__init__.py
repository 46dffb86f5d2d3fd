# Upload services package
from .chunk_service import ChunkUploadService
from .image_service import remove_exif_metadata, remove_exif_metadata_async

# Define what should be exported from this package
__all__ = [
    "ChunkUploadService",
    "remove_exif_metadata",
    "remove_exif_metadata_async",
]
