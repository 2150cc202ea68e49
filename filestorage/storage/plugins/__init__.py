"""
Put pipeline plugins.
"""

from .base import Plugin
from .image_manipulation import DEFAULT_BREAKPOINTS, DEFAULT_THUMBNAIL_RESIZE_OPTIONS, ImageManipulation, ResizeOptions

__all__ = [
    "Plugin",
    "ImageManipulation",
    "ResizeOptions",
    "DEFAULT_BREAKPOINTS",
    "DEFAULT_THUMBNAIL_RESIZE_OPTIONS"
]
