"""
Disk configuration resolution.

Validates a configuration set and picks the default disk before any
driver gets instantiated.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..models.disk import DiskConfig, DriverName, LocalDiskConfig
from .errors import DiskNotDefinedError, DuplicatedDiskNameError, MissingDefaultDiskError
from .settings import StorageSettings

logger = logging.getLogger(__name__)

DEFAULT_DISK_NAME = "local"


def default_disk_config() -> LocalDiskConfig:
    """Disk used when no disk is configured at all."""
    return LocalDiskConfig(name=DEFAULT_DISK_NAME, driver=DriverName.LOCAL, root="storage")


def check_unique_names(disk_configs: Sequence[DiskConfig]) -> None:
    """Raise DuplicatedDiskNameError when two disks share a name."""
    seen = set()
    for config in disk_configs:
        if config.name in seen:
            raise DuplicatedDiskNameError(f"Duplicated disk name: {config.name}")
        seen.add(config.name)


def resolve_default_disk_name(disk_configs: Sequence[DiskConfig], default_disk_name: Optional[str] = None) -> str:
    """
    Pick the default disk name.

    An explicit name wins. Otherwise a single configured disk, or the single
    disk marked ``is_default``, becomes the default.

    Raises:
        MissingDefaultDiskError: If the default is ambiguous
    """
    if default_disk_name:
        return default_disk_name

    if len(disk_configs) == 1:
        return disk_configs[0].name

    marked = [config.name for config in disk_configs if config.is_default]
    if len(marked) == 1:
        return marked[0]
    if len(marked) > 1:
        raise MissingDefaultDiskError(
            f"More than one disk is marked as default: {', '.join(marked)}. Please specify a default disk name."
        )
    raise MissingDefaultDiskError(
        f"{len(disk_configs)} disks are configured but no default disk name is specified."
    )


def get_disk_config(disk_configs: Sequence[DiskConfig], disk_name: str) -> DiskConfig:
    """
    Find the configuration of a disk by name.

    Raises:
        DiskNotDefinedError: If no disk carries that name
    """
    for config in disk_configs:
        if config.name == disk_name:
            return config
    raise DiskNotDefinedError(disk_name)


def resolve_disk_configs(settings: StorageSettings) -> Tuple[List[DiskConfig], DiskConfig]:
    """
    Validate the disks of a settings value and resolve the default one.

    Returns:
        The effective disk list and the configuration of the default disk

    Raises:
        DuplicatedDiskNameError: If two disks share a name
        MissingDefaultDiskError: If the default disk is ambiguous
        DiskNotDefinedError: If the default disk is not configured
    """
    disk_configs = list(settings.disk_configs)
    check_unique_names(disk_configs)

    if not disk_configs:
        logger.debug("No disk configured, using the implicit local disk")
        disk_configs = [default_disk_config()]

    default_name = resolve_default_disk_name(disk_configs, settings.default_disk_name)
    return disk_configs, get_disk_config(disk_configs, default_name)
