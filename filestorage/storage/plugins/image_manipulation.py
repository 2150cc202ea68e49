"""
Responsive image plugin.

After an image is uploaded, derives a thumbnail and one resized variant
per breakpoint, writes them next to the original and reports their stats
under the ``formats`` key of the put result.
"""

import asyncio
import logging
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from ...models.results import ImageStats, bytes_to_kbytes
from ..errors import StorageError
from ..images import FIT_MODES, can_be_processed, read_image_stats, read_metadata, resize_to, sibling_path
from .base import Plugin

logger = logging.getLogger(__name__)


class ResizeOptions(BaseModel):
    """Target box of a resize."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    fit: str = Field("inside", description="inside, contain, cover or fill")

    @field_validator("fit")
    @classmethod
    def validate_fit(cls, v):
        if v not in FIT_MODES:
            raise ValueError(f"fit must be one of: {', '.join(FIT_MODES)}")
        return v


DEFAULT_THUMBNAIL_RESIZE_OPTIONS = ResizeOptions(width=245, height=156, fit="inside")

DEFAULT_BREAKPOINTS = {
    "large": 1000,
    "medium": 750,
    "small": 500,
}

_DEFAULT = object()


def breakpoint_smaller_than(breakpoint: int, width: int, height: int) -> bool:
    return breakpoint < width or breakpoint < height


class ImageManipulation(Plugin):
    """
    Generates a thumbnail and responsive formats of uploaded images.

    Pass ``thumbnail=None`` or ``breakpoints=None`` to disable either step.
    Configure it for a façade with ``functools.partial``::

        Storage(StorageSettings(plugins=[
            partial(ImageManipulation, breakpoints={"size1": 400, "size2": 600})
        ]))
    """

    plugin_name = "image_manipulation"
    after_put_key = "formats"

    def __init__(self, thumbnail=_DEFAULT, breakpoints=_DEFAULT):
        super().__init__()
        if thumbnail is _DEFAULT:
            thumbnail = DEFAULT_THUMBNAIL_RESIZE_OPTIONS
        elif thumbnail is not None and not isinstance(thumbnail, ResizeOptions):
            thumbnail = ResizeOptions.model_validate(thumbnail)
        if breakpoints is _DEFAULT:
            breakpoints = dict(DEFAULT_BREAKPOINTS)
        self.thumbnail: Optional[ResizeOptions] = thumbnail
        self.breakpoints: Optional[Dict[str, int]] = breakpoints

    async def after_put(self, path: str) -> Optional[Dict[str, ImageStats]]:
        try:
            file = await read_image_stats(self.disk, path, keep_buffer=True)
        except ValueError as e:
            logger.debug(f"Skipping image formats for {path}: {e}")
            return None
        except StorageError as e:
            logger.warning(f"Cannot read back {path} for image formats: {e}")
            return None

        image_format, _, _ = await asyncio.to_thread(read_metadata, file.buffer)
        if not can_be_processed(image_format):
            logger.debug(f"Skipping image formats for {path}: unsupported format {image_format}")
            return None

        formats: Dict[str, ImageStats] = {}

        thumbnail = await self.generate_thumbnail(file)
        if thumbnail:
            formats["thumbnail"] = await self._store(thumbnail)

        for key, variant in (await self.generate_responsive_formats(file)).items():
            formats[key] = await self._store(variant)

        return formats or None

    async def _store(self, variant: ImageStats) -> ImageStats:
        await self.disk.put(variant.buffer, variant.path)
        return variant.without_buffer()

    async def generate_thumbnail(self, file: ImageStats) -> Optional[ImageStats]:
        """Build the thumbnail variant, or None when disabled, not needed or failed."""
        options = self.thumbnail
        if options is None:
            return None
        if not (file.width > options.width or file.height > options.height):
            return None
        return await self._variant(file, f"thumbnail_{file.name}", options.width, options.height, options.fit)

    async def generate_responsive_formats(self, file: ImageStats) -> Dict[str, ImageStats]:
        """Build one variant per breakpoint smaller than the original."""
        if not self.breakpoints:
            return {}

        keys = [
            key for key, breakpoint in self.breakpoints.items()
            if breakpoint_smaller_than(breakpoint, file.width, file.height)
        ]
        variants = await asyncio.gather(*[
            self._variant(file, f"{key}_{file.name}", self.breakpoints[key], self.breakpoints[key], "inside")
            for key in keys
        ])
        return {key: variant for key, variant in zip(keys, variants) if variant is not None}

    async def _variant(self, file: ImageStats, name: str, width: int, height: int, fit: str) -> Optional[ImageStats]:
        buffer = await asyncio.to_thread(resize_to, file.buffer, width, height, fit)
        if buffer is None:
            return None
        metadata = await asyncio.to_thread(read_metadata, buffer)
        if metadata is None:
            return None
        _, new_width, new_height = metadata
        return ImageStats(
            name=name,
            path=sibling_path(file.path, name),
            ext=file.ext,
            mime=file.mime,
            width=new_width,
            height=new_height,
            size=bytes_to_kbytes(len(buffer)),
            hash=None,
            buffer=buffer,
        )
