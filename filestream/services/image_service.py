"""
Image metadata removal.

Images are decoded with Pillow and re-encoded as quality-100 JPEG, which drops
EXIF and any other metadata that is not part of the pixel data. The new file
is written next to the original and swapped in with os.replace, so a failed
encode never leaves a truncated image behind.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

from PIL import Image
from starlette.concurrency import run_in_threadpool

from filestream.utils.exceptions import CreateError, DecodeError, EncodeError, NotFoundError
from filestream.utils.logger import get_logger

logger = get_logger(__name__)

# Modes the JPEG encoder accepts as-is
JPEG_MODES = ("RGB", "L", "CMYK")

JPEG_QUALITY = 100


def _discard_temp(tmp_path: str) -> None:
    try:
        os.unlink(tmp_path)
    except OSError as e:
        logger.warning(f"Could not remove temporary file {tmp_path}: {str(e)}")


def remove_exif_metadata(input_path: Union[str, Path]) -> None:
    """
    Strip metadata from an image by re-encoding it in place.

    The result is always a JPEG, whatever the source format was. No backup of
    the original bytes is kept.

    Args:
        input_path: Location of the image

    Raises:
        NotFoundError: If the image does not exist
        DecodeError: If the file cannot be decoded as an image
        CreateError: If the replacement file cannot be created or swapped in
        EncodeError: If re-encoding fails
    """
    path = str(input_path)

    try:
        source = Image.open(path)
    except FileNotFoundError as e:
        raise NotFoundError(path, e) from e
    except (OSError, ValueError) as e:
        logger.error(f"Failed to open image {path}: {str(e)}")
        raise DecodeError(path, e) from e

    with source:
        try:
            source.load()
            image = source if source.mode in JPEG_MODES else source.convert("RGB")
            # Pixels only; info (comments, EXIF, ICC, XMP) is left behind
            clean = Image.frombytes(image.mode, image.size, image.tobytes())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to decode image {path}: {str(e)}")
            raise DecodeError(path, e) from e

        directory = os.path.dirname(os.path.abspath(path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".strip-", suffix=".jpg", dir=directory)
        except OSError as e:
            logger.error(f"Failed to create output file in {directory}: {str(e)}")
            raise CreateError(path, e) from e

        try:
            with os.fdopen(fd, "wb") as output:
                clean.save(output, format="JPEG", quality=JPEG_QUALITY)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to encode image {path}: {str(e)}")
            _discard_temp(tmp_path)
            raise EncodeError(path, e) from e

    try:
        shutil.copymode(path, tmp_path)
    except OSError as e:
        logger.warning(f"Could not copy permissions of {path}: {str(e)}")

    try:
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error(f"Failed to replace {path} with stripped image: {str(e)}")
        _discard_temp(tmp_path)
        raise CreateError(path, e) from e

    logger.info(f"Removed metadata from image: {path}")


async def remove_exif_metadata_async(input_path: Union[str, Path]) -> None:
    """Run remove_exif_metadata in the thread pool."""
    await run_in_threadpool(remove_exif_metadata, input_path)
