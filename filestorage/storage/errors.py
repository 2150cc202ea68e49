"""
Storage error taxonomy.

Configuration errors are raised synchronously while resolving disks and
drivers. I/O errors are raised by driver coroutines after the backend
specific failure has been normalized by the driver's ``translate_error``.
"""


class StorageError(Exception):
    """Base exception for all storage errors."""

    default_message = "Storage error"
    code = "StorageError"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class StorageConfigurationError(StorageError):
    """Exception raised for storage configuration errors."""

    default_message = "Invalid storage configuration"
    code = "StorageConfiguration"


class DuplicatedDiskNameError(StorageConfigurationError):
    """Two configured disks share the same name."""

    default_message = "Duplicated disk name."
    code = "DuplicatedDiskName"


class MissingDefaultDiskError(StorageConfigurationError):
    """More than one disk is configured and none is chosen as default."""

    default_message = "Default disk is ambiguous, please specify a default disk name."
    code = "MissingDefaultDisk"


class DiskNotDefinedError(StorageConfigurationError):
    """A disk name that is not part of the configuration was requested."""

    code = "DiskNotDefined"

    def __init__(self, disk_name: str):
        self.disk_name = disk_name
        super().__init__(f"Given disk is not defined: {disk_name}")


class DriverNotDeclaredError(StorageConfigurationError):
    """A driver could not be resolved, is not installed, or failed to start."""

    code = "DriverNotDeclared"


class StorageFileNotFoundError(StorageError, FileNotFoundError):
    """The backend reports that the requested resource does not exist."""

    default_message = "File not found"
    code = "FileNotFound"


class UnauthenticatedError(StorageError):
    """The backend rejected the credentials or the access."""

    default_message = "Unauthenticated"
    code = "Unauthenticated"


class MoveFailedError(StorageError):
    """The backend failed to move or rename a file."""

    default_message = "File move failed."
    code = "MoveFailed"


class InvalidPathError(StorageError):
    """The requested path resolves outside of the disk root."""

    default_message = "Path is outside of the disk root."
    code = "InvalidPath"
