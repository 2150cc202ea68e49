"""
Disk configuration models.

A disk is a named access point to one backend storage location. The
generic ``DiskConfig`` keeps unknown backend fields so that custom drivers
can receive their own settings; the built-in drivers validate the same
data again through their specific model.
"""

from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DriverName(str, Enum):
    """Identifiers of the drivers known to the package."""
    LOCAL = "local"
    S3 = "s3"
    FTP = "ftp"
    SFTP = "sftp"
    GCS = "gcs"


class DiskConfig(BaseModel):
    """
    Configuration of a single disk.

    ``driver`` is either a driver identifier (see ``DriverName``) or a
    driver class / factory supplied inline.
    """

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        arbitrary_types_allowed=True,
        json_schema_extra={
            "example": {
                "name": "local",
                "driver": "local",
                "root": "storage",
                "public_url": "http://localhost:8000/storage"
            }
        }
    )

    name: str = Field(
        ...,
        description="Unique name of the disk inside one configuration set",
        min_length=1,
        max_length=255
    )

    driver: Union[str, Callable[..., Any]] = Field(
        ...,
        description="Driver identifier or driver class/factory"
    )

    public_url: Optional[str] = Field(
        None,
        description="Public base URL used instead of the backend default"
    )

    is_default: bool = Field(
        False,
        description="Mark this disk as the default one"
    )

    @field_validator("driver", mode="before")
    @classmethod
    def validate_driver(cls, v):
        """Store driver enums as their plain identifier."""
        if isinstance(v, DriverName):
            return v.value
        if isinstance(v, str) and not v.strip():
            raise ValueError("driver identifier cannot be empty")
        return v

    @field_validator("public_url")
    @classmethod
    def strip_public_url(cls, v):
        """Public URLs are joined with '/' so a trailing slash is dropped."""
        if v:
            return v.rstrip("/")
        return v

    @property
    def driver_identifier(self) -> str:
        """Printable identifier of the configured driver."""
        if isinstance(self.driver, str):
            return self.driver
        return getattr(self.driver, "driver_name", None) or getattr(self.driver, "__name__", repr(self.driver))


class LocalDiskConfig(DiskConfig):
    """Local filesystem disk."""

    driver: Union[str, Callable[..., Any]] = DriverName.LOCAL.value

    root: str = Field(
        "storage",
        description="Root directory of the disk, relative paths resolve from the working directory"
    )


class S3DiskConfig(DiskConfig):
    """Amazon S3 (or S3 compatible) bucket disk."""

    driver: Union[str, Callable[..., Any]] = DriverName.S3.value

    bucket_name: str = Field(
        ...,
        description="Bucket holding the files",
        min_length=1
    )

    region_name: Optional[str] = None
    endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    acl: Optional[str] = Field(
        "public-read",
        description="Canned ACL applied to uploaded objects (None to skip)"
    )


class FtpDiskConfig(DiskConfig):
    """FTP / FTPS server disk."""

    driver: Union[str, Callable[..., Any]] = DriverName.FTP.value

    host: str = Field(..., min_length=1)
    port: int = Field(21, ge=1, le=65535)
    user: str = "anonymous"
    password: str = ""
    root: str = ""
    secure: bool = Field(False, description="Use explicit FTPS")
    timeout: Optional[float] = Field(None, gt=0)

    idle_timeout: float = Field(
        0.5,
        description="Seconds an idle connection is kept open for the next call",
        ge=0
    )

    @field_validator("root")
    @classmethod
    def strip_root(cls, v):
        """Root is joined with '/' so a trailing slash is dropped."""
        return v.rstrip("/")
