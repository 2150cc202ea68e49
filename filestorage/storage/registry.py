"""
Driver registry.

Maps driver identifiers to factories building a driver from a disk
configuration. Built-in drivers are registered by import path and only
imported on first use, so a driver whose optional library is missing is
reported as "not installed" instead of breaking the whole package.
"""

import importlib
import logging
from typing import Callable, Dict, Mapping, Optional, Union

from ..models.disk import DiskConfig, DriverName
from .drivers.base import Driver
from .errors import DriverNotDeclaredError

logger = logging.getLogger(__name__)

DriverFactory = Callable[[DiskConfig], Driver]
DriverReference = Union[str, DriverName, DriverFactory]

KNOWN_DRIVERS = frozenset(name.value for name in DriverName)

BUILTIN_DRIVERS = {
    DriverName.LOCAL.value: "filestorage.storage.drivers.local:LocalDriver",
    DriverName.S3.value: "filestorage.storage.drivers.s3:S3Driver",
    DriverName.FTP.value: "filestorage.storage.drivers.ftp:FtpDriver",
}


def import_string(path: str):
    """Import ``module:attribute`` (or ``module.attribute``) and return the attribute."""
    if ":" in path:
        module_name, attribute = path.split(":", 1)
    else:
        module_name, _, attribute = path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


class DriverRegistry:
    """
    Catalogue of available drivers.

    Registrations are only ever added; nothing is removed.
    """

    def __init__(self, builtins: Optional[Mapping[str, str]] = None):
        self._factories: Dict[str, DriverFactory] = {}
        self._lazy: Dict[str, str] = dict(BUILTIN_DRIVERS if builtins is None else builtins)

    def register(self, identifier: Union[str, DriverName], factory: DriverFactory) -> None:
        """Register a driver factory (usually a Driver subclass) under an identifier."""
        key = _identifier(identifier)
        if not callable(factory):
            raise TypeError(f"Driver factory for '{key}' must be callable")
        self._factories[key] = factory
        logger.debug(f"Registered driver '{key}'")

    def is_registered(self, identifier: Union[str, DriverName]) -> bool:
        key = _identifier(identifier)
        return key in self._factories or key in self._lazy

    def identifiers(self):
        return sorted(set(self._factories) | set(self._lazy))

    def resolve(self,
                reference: DriverReference,
                custom_drivers: Optional[Mapping[str, DriverFactory]] = None) -> DriverFactory:
        """
        Resolve a driver reference to a factory.

        Args:
            reference: Identifier, enum member or an inline class/factory
            custom_drivers: Extra identifier -> factory pairs checked first

        Raises:
            DriverNotDeclaredError: If the reference cannot be resolved
        """
        if callable(reference) and not isinstance(reference, str):
            return reference

        key = _identifier(reference)

        if custom_drivers and key in custom_drivers:
            return custom_drivers[key]

        if key in self._factories:
            return self._factories[key]

        if key in self._lazy:
            try:
                factory = import_string(self._lazy[key])
            except ImportError as e:
                logger.warning(f"Driver '{key}' could not be imported: {e}")
                raise DriverNotDeclaredError(
                    f"Driver '{key}' is not installed. Please install the optional dependencies "
                    f"for the {key} driver (pip install filestorage[{key}])."
                ) from e
            self._factories[key] = factory
            return factory

        if key in KNOWN_DRIVERS:
            raise DriverNotDeclaredError(
                f"Driver '{key}' is not installed. Please register an implementation of "
                f"the {key} driver before using it."
            )

        raise DriverNotDeclaredError(f"Driver '{key}' is not declared.")

    def create(self,
               config: DiskConfig,
               custom_drivers: Optional[Mapping[str, DriverFactory]] = None) -> Driver:
        """
        Build the driver of a disk.

        Raises:
            DriverNotDeclaredError: If the driver cannot be resolved or fails to start
        """
        factory = self.resolve(config.driver, custom_drivers)
        try:
            driver = factory(config)
        except DriverNotDeclaredError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize driver '{config.driver_identifier}' for disk '{config.name}': {e}")
            raise DriverNotDeclaredError(
                f"Driver '{config.driver_identifier}' could not be initialized for disk '{config.name}': {e}"
            ) from e
        logger.info(f"Disk '{config.name}' ready with driver '{config.driver_identifier}'")
        return driver


def _identifier(reference: Union[str, DriverName]) -> str:
    if isinstance(reference, DriverName):
        return reference.value
    return str(reference)


default_registry = DriverRegistry()


def register_driver(identifier: Union[str, DriverName], factory: DriverFactory) -> None:
    """Register a custom driver in the process-wide registry."""
    default_registry.register(identifier, factory)
