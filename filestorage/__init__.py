"""
filestorage

Unified file storage over local, S3 and FTP disks.
"""

from .models import DiskConfig, DriverName, FtpDiskConfig, LocalDiskConfig, PutResult, S3DiskConfig
from .storage import Storage, StorageSettings, register_driver
from .storage.plugins import ImageManipulation, Plugin

__version__ = "1.0.0"

__all__ = [
    "Storage",
    "StorageSettings",
    "register_driver",
    "DiskConfig",
    "DriverName",
    "LocalDiskConfig",
    "S3DiskConfig",
    "FtpDiskConfig",
    "PutResult",
    "Plugin",
    "ImageManipulation"
]
