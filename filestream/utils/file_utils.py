"""
File utility functions shared by the upload services.
"""

import os
import uuid
from typing import Iterable

from filestream.utils.exceptions import IdentifierGenerationFailure
from filestream.utils.logger import get_logger

logger = get_logger(__name__)

# Binary unit prefixes used by pretty_byte_size, largest named step last
SIZE_UNITS = ["", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi"]


def is_valid_filename(filename: str) -> bool:
    """
    Validate that a filename can be used as a bare name inside an upload directory.

    Args:
        filename: The filename to validate

    Returns:
        True if valid, False otherwise
    """
    if not filename or len(filename) > 255:
        return False

    # Disallow paths with directory traversal
    if '/' in filename or '\\' in filename or os.sep in filename:
        return False

    if filename in (".", "..") or "\x00" in filename:
        return False

    return True


def get_file_extension(filename: str) -> str:
    """
    Get the extension of a filename, including the leading dot.

    The case is preserved; a name without a suffix yields "".

    Args:
        filename: Name of the file

    Returns:
        Extension string, e.g. ".JPG" or ""
    """
    return os.path.splitext(filename)[1]


def is_allow_extension(allowed_extensions: Iterable[str], filename: str) -> bool:
    """
    Check if a file's extension is in the allow-list.

    Args:
        allowed_extensions: Lower-cased extensions with leading dot, e.g. [".jpg"]
        filename: Name of the uploaded file

    Returns:
        True if the lower-cased extension matches one entry exactly
    """
    ext = get_file_extension(filename).lower()

    for allowed in allowed_extensions:
        if ext == allowed:
            return True

    return False


def unique_name(filename: str) -> str:
    """
    Generate a collision-resistant name that keeps the original extension.

    Args:
        filename: Original filename

    Returns:
        "<uuid><ext>" with the extension preserved verbatim

    Raises:
        IdentifierGenerationFailure: If no identifier could be produced
    """
    ext = get_file_extension(filename)

    try:
        identifier = uuid.uuid1()
    except (OSError, ValueError) as e:
        logger.critical(f"Unable to generate unique identifier: {str(e)}")
        raise IdentifierGenerationFailure(str(e)) from e

    return f"{identifier}{ext}"


def pretty_byte_size(size: int) -> str:
    """
    Format a byte count with 1024-based units.

    Args:
        size: Number of bytes

    Returns:
        Human-readable size such as "19.0B" or "1.5KiB"
    """
    value = float(size)

    for unit in SIZE_UNITS:
        if abs(value) < 1024.0:
            return "%3.1f%sB" % (value, unit)
        value /= 1024.0

    return "%.1fYiB" % value
