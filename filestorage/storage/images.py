"""
Image helpers built on Pillow.

Decoding and resizing are blocking and run in a worker thread. Resizing
never raises: a failure is logged and reported as ``None`` so that one
broken variant does not abort the others.
"""

import asyncio
import io
import logging
import posixpath
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from ..models.results import ImageStats, bytes_to_kbytes
from .drivers.base import Driver

logger = logging.getLogger(__name__)

# Formats the image pipeline derives variants from.
PROCESSABLE_FORMATS = ("JPEG", "PNG", "WEBP", "TIFF")

FIT_MODES = ("inside", "contain", "cover", "fill")


def file_name(path: str) -> str:
    return posixpath.basename(path)


def file_ext(path: str) -> str:
    return posixpath.splitext(path)[1]


def sibling_path(path: str, name: str) -> str:
    """Path of ``name`` in the same directory as ``path``."""
    return posixpath.join(posixpath.dirname(path), name)


def read_metadata(buffer: bytes) -> Optional[Tuple[str, int, int]]:
    """Return ``(format, width, height)`` or None when the data is not a decodable image."""
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            return img.format, img.width, img.height
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        logger.debug(f"Not a readable image: {e}")
        return None


def can_be_processed(image_format: Optional[str]) -> bool:
    return image_format in PROCESSABLE_FORMATS


def resize_to(buffer: bytes, width: int, height: int, fit: str = "inside") -> Optional[bytes]:
    """
    Resize an encoded image and re-encode it in its own format.

    Fit modes:
        inside: keep the aspect ratio, fit within width x height
        contain: keep the aspect ratio and pad to exactly width x height
        cover: keep the aspect ratio and crop to exactly width x height
        fill: stretch to exactly width x height
    """
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            image_format = img.format
            exif = img.info.get("exif")
            if fit == "inside":
                resized = img.copy()
                resized.thumbnail((width, height), Image.Resampling.LANCZOS)
            elif fit == "contain":
                resized = ImageOps.pad(img, (width, height), Image.Resampling.LANCZOS)
            elif fit == "cover":
                resized = ImageOps.fit(img, (width, height), Image.Resampling.LANCZOS)
            elif fit == "fill":
                resized = img.resize((width, height), Image.Resampling.LANCZOS)
            else:
                raise ValueError(f"Unknown fit mode: {fit}")

            output = io.BytesIO()
            save_options = {"exif": exif} if exif and image_format in ("JPEG", "WEBP") else {}
            resized.save(output, format=image_format, **save_options)
            return output.getvalue()
    except Exception as e:
        logger.warning(f"Image resize to {width}x{height} ({fit}) failed: {e}")
        return None


async def read_image_stats(driver: Driver, path: str, keep_buffer: bool = False) -> ImageStats:
    """
    Read an image back from a disk and describe it.

    Raises:
        ValueError: If the file is not a decodable image
    """
    stream = await driver.get(path)
    try:
        buffer = await asyncio.to_thread(stream.read)
    finally:
        stream.close()

    metadata = await asyncio.to_thread(read_metadata, buffer)
    if metadata is None:
        raise ValueError(f"Not an image: {path}")
    image_format, width, height = metadata

    return ImageStats(
        name=file_name(path),
        path=path,
        ext=file_ext(path),
        mime=Image.MIME.get(image_format),
        width=width,
        height=height,
        size=bytes_to_kbytes(len(buffer)),
        hash=None,
        buffer=buffer if keep_buffer else None,
    )
