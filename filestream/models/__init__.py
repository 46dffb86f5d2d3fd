"""
Models package for filestream.
"""

from .file import ChunkUploadRequest, ChunkUploadResult, FinalizedFile

__all__ = [
    "ChunkUploadRequest",
    "ChunkUploadResult",
    "FinalizedFile",
]
