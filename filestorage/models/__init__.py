"""
Pydantic models for filestorage

This module provides the disk configuration models, the results returned
by storage operations and the HTTP response formats.
"""

from .disk import DiskConfig, DriverName, FtpDiskConfig, LocalDiskConfig, S3DiskConfig
from .results import FileStat, ImageStats, PutResult, bytes_to_kbytes
from .responses import DiskListResponse, DiskSummary, ErrorResponse, SuccessResponse

__all__ = [
    "DiskConfig",
    "DriverName",
    "LocalDiskConfig",
    "S3DiskConfig",
    "FtpDiskConfig",
    "PutResult",
    "ImageStats",
    "FileStat",
    "bytes_to_kbytes",
    "DiskListResponse",
    "DiskSummary",
    "ErrorResponse",
    "SuccessResponse"
]
