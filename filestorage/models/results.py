"""
Models returned by storage operations.
"""

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def bytes_to_kbytes(size: int) -> float:
    """Convert a byte count to kilobytes rounded to 2 decimal places."""
    return math.floor(size / 1000 * 100 + 0.5) / 100


class ImageStats(BaseModel):
    """
    Metadata of an image stored on a disk.

    ``buffer`` only lives while the image pipeline processes the file; it
    is never serialized.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "thumbnail_bird.jpeg",
                "path": "photos/thumbnail_bird.jpeg",
                "ext": ".jpeg",
                "mime": "image/jpeg",
                "width": 208,
                "height": 156,
                "size": 9.45,
                "hash": None
            }
        }
    )

    name: str = Field(..., description="Base name of the file")
    path: str = Field(..., description="Path of the file on its disk")
    ext: str = Field(..., description="File extension including the dot")
    mime: Optional[str] = Field(None, description="MIME type of the image")
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)
    size: float = Field(..., description="Size in kilobytes (2 decimal places)", ge=0)
    hash: Optional[str] = None

    buffer: Optional[bytes] = Field(
        None,
        description="Image content (internal use)",
        exclude=True,
        repr=False
    )

    def without_buffer(self) -> "ImageStats":
        """Return a copy that no longer carries the image content."""
        return self.model_copy(update={"buffer": None})


class PutResult(BaseModel):
    """
    Result of ``Storage.put``.

    Backend drivers and plugins add their own fields (``Bucket``, ``Key``,
    ``code``, ``formats`` ...). A field that was never set is absent from
    the result rather than ``None``.
    """

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Uploading success!",
                "name": "bird.jpeg",
                "path": "photos/bird.jpeg",
                "formats": {
                    "thumbnail": {
                        "name": "thumbnail_bird.jpeg",
                        "path": "photos/thumbnail_bird.jpeg",
                        "ext": ".jpeg",
                        "mime": "image/jpeg",
                        "width": 208,
                        "height": 156,
                        "size": 9.45,
                        "hash": None
                    }
                }
            }
        }
    )

    success: bool = True
    message: str = "Uploading success"
    name: str
    path: str

    def merge(self, fields: dict) -> None:
        """Merge fields into the result, the given values win."""
        for key, value in fields.items():
            setattr(self, key, value)

    def has(self, key: str) -> bool:
        """Check whether a field is present on the result."""
        return key in type(self).model_fields or key in (self.model_extra or {})

    def __getitem__(self, key: str):
        if not self.has(key):
            raise KeyError(key)
        return getattr(self, key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)


class FileStat(BaseModel):
    """Basic metadata of a stored file."""

    path: str
    exists: bool
    size: Optional[int] = Field(None, description="Size in bytes", ge=0)
    last_modified: Optional[int] = Field(None, description="Epoch milliseconds")
    url: Optional[str] = None
