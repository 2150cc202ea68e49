"""
Storage factory for creating storage settings and façades.

This module provides factory functions for creating ``Storage`` instances
from a YAML configuration file with environment variable overrides.
"""

import functools
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..models.disk import DiskConfig
from .errors import StorageConfigurationError, StorageError
from .plugins.image_manipulation import ImageManipulation
from .registry import DriverRegistry, import_string
from .service import Storage
from .settings import StorageSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/storage.yaml")

BUILTIN_PLUGINS = {
    ImageManipulation.plugin_name: ImageManipulation,
}

_TRUE_VALUES = ("1", "true", "yes", "on")


def load_storage_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load storage configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to configuration file (default: ``FILE_STORAGE_CONFIG``
            or config/storage.yaml)

    Returns:
        Configuration dictionary

    Raises:
        StorageConfigurationError: If configuration loading fails
    """
    try:
        if config_path is None:
            config_path = Path(os.getenv("FILE_STORAGE_CONFIG", DEFAULT_CONFIG_PATH))
        config_path = Path(config_path)

        if not config_path.exists():
            raise StorageConfigurationError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        if not config or "storage" not in config:
            raise StorageConfigurationError("Invalid configuration: missing 'storage' section")
        if config["storage"] is None:
            config["storage"] = {}

        config = _apply_environment_overrides(config)

        logger.info(f"Storage configuration loaded from {config_path}")
        return config

    except StorageConfigurationError:
        raise
    except yaml.YAMLError as e:
        raise StorageConfigurationError(f"YAML parsing error: {e}") from e
    except Exception as e:
        raise StorageConfigurationError(f"Configuration loading failed: {e}") from e


def _apply_environment_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern: FILE_STORAGE_<KEY>
    """
    storage = config["storage"]

    default_disk = os.getenv("FILE_STORAGE_DEFAULT_DISK")
    if default_disk:
        storage["default_disk_name"] = default_disk
        logger.info(f"Default disk overridden by environment: {default_disk}")

    unique_file_name = os.getenv("FILE_STORAGE_UNIQUE_FILE_NAME")
    if unique_file_name:
        storage["unique_file_name"] = unique_file_name.strip().lower() in _TRUE_VALUES
        logger.info(f"Unique file name overridden by environment: {storage['unique_file_name']}")

    local_root = os.getenv("FILE_STORAGE_LOCAL_ROOT")
    if local_root:
        local_disks = [disk for disk in storage.get("disks") or [] if disk.get("driver") == "local"]
        if local_disks:
            for disk in local_disks:
                disk["root"] = local_root
        else:
            storage.setdefault("disks", []).append({"name": "local", "driver": "local", "root": local_root})
        logger.info(f"Local disk root overridden by environment: {local_root}")

    return config


def _create_plugin_factory(entry: Any) -> Callable[[], Any]:
    """
    Turn a plugin entry into a zero-argument factory.

    An entry is either a name/import path or a mapping with ``name`` and
    optional ``options``.
    """
    if isinstance(entry, str):
        name, options = entry, {}
    else:
        name, options = entry["name"], entry.get("options") or {}

    plugin_class = BUILTIN_PLUGINS.get(name)
    if plugin_class is None:
        plugin_class = import_string(name)

    if options:
        return functools.partial(plugin_class, **options)
    return plugin_class


def create_storage_settings(config: Dict[str, Any]) -> StorageSettings:
    """
    Create storage settings from a configuration dictionary.

    Raises:
        StorageConfigurationError: If settings creation fails
    """
    try:
        storage_config = config["storage"] or {}

        disk_configs: List[DiskConfig] = [
            DiskConfig.model_validate(disk) for disk in storage_config.get("disks") or []
        ]
        plugins = [_create_plugin_factory(entry) for entry in storage_config.get("plugins") or []]
        custom_drivers = {
            identifier: import_string(path)
            for identifier, path in (storage_config.get("custom_drivers") or {}).items()
        }

        settings = StorageSettings(
            default_disk_name=storage_config.get("default_disk_name"),
            disk_configs=disk_configs,
            plugins=plugins,
            unique_file_name=bool(storage_config.get("unique_file_name", False)),
            custom_drivers=custom_drivers,
        )

        logger.info(f"Storage settings created: disks={settings.disk_names()}, plugins={len(plugins)}")
        return settings

    except KeyError as e:
        raise StorageConfigurationError(f"Missing required configuration key: {e}") from e
    except ValidationError as e:
        raise StorageConfigurationError(f"Invalid disk configuration: {e}") from e
    except (ImportError, AttributeError) as e:
        raise StorageConfigurationError(f"Cannot import plugin or driver: {e}") from e


def create_storage(config: Dict[str, Any], registry: Optional[DriverRegistry] = None) -> Storage:
    """
    Create a storage façade from a configuration dictionary.

    Raises:
        StorageConfigurationError: If the façade cannot be created
    """
    try:
        return Storage(create_storage_settings(config), registry=registry)
    except StorageError:
        raise
    except Exception as e:
        raise StorageConfigurationError(f"Storage creation failed: {e}") from e


def create_default_storage(config_path: Optional[Path] = None) -> Storage:
    """
    Create a storage façade with the default configuration.

    This is the main entry point for creating storage with configuration
    loaded from file and environment overrides.

    Raises:
        StorageConfigurationError: If configuration or creation fails
    """
    try:
        config = load_storage_config(config_path)
        return create_storage(config)
    except StorageError as e:
        logger.error(f"Failed to create default storage: {e}")
        raise
