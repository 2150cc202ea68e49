"""
Storage module for filestorage

This module provides the storage façade, the driver registry, the error
taxonomy and the configuration system.
"""

from .errors import (
    DiskNotDefinedError,
    DriverNotDeclaredError,
    DuplicatedDiskNameError,
    InvalidPathError,
    MissingDefaultDiskError,
    MoveFailedError,
    StorageConfigurationError,
    StorageError,
    StorageFileNotFoundError,
    UnauthenticatedError,
)
from .factory import create_default_storage, create_storage, create_storage_settings, load_storage_config
from .registry import DriverRegistry, default_registry, register_driver
from .service import Storage
from .settings import StorageSettings
from .sources import ByteSource

__all__ = [
    "Storage",
    "StorageSettings",
    "ByteSource",
    "DriverRegistry",
    "default_registry",
    "register_driver",
    "create_default_storage",
    "create_storage",
    "create_storage_settings",
    "load_storage_config",
    "StorageError",
    "StorageConfigurationError",
    "DuplicatedDiskNameError",
    "MissingDefaultDiskError",
    "DiskNotDefinedError",
    "DriverNotDeclaredError",
    "StorageFileNotFoundError",
    "UnauthenticatedError",
    "MoveFailedError",
    "InvalidPathError"
]
