"""
Abstract base class for storage drivers.

This module defines the Driver interface that all backend implementations
must follow, and the error normalization applied to every contract method.
"""

import functools
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, Optional, Type

from pydantic import BaseModel

from ...models.disk import DiskConfig
from ..errors import StorageError
from ..sources import ByteSource, PutData

logger = logging.getLogger(__name__)

# Public methods whose failures are normalized into the storage error taxonomy.
CONTRACT_METHODS = (
    "url",
    "exists",
    "size",
    "last_modified",
    "stats",
    "put",
    "get",
    "delete",
    "copy",
    "move",
    "append",
    "make_dir",
    "remove_dir",
)


def translate_errors(method):
    """
    Wrap a driver method so backend errors are re-raised as storage errors.

    Errors already part of the taxonomy pass through. Any other error is
    offered to ``driver.translate_error``; when it returns nothing the
    original error propagates unmodified.
    """

    def _translate(driver, error: Exception):
        translated = driver.translate_error(error)
        if translated is None or translated is error:
            return None
        logger.debug(f"[{driver.name}] {method.__name__} failed: {error!r} -> {translated.__class__.__name__}")
        return translated

    if inspect.iscoroutinefunction(method):
        @functools.wraps(method)
        async def _async_inner(self, *args, **kwargs):
            try:
                return await method(self, *args, **kwargs)
            except StorageError:
                raise
            except Exception as ex:
                translated = _translate(self, ex)
                if translated is None:
                    raise
                raise translated from ex

        _async_inner.__translates_errors__ = True
        return _async_inner

    @functools.wraps(method)
    def _inner(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except StorageError:
            raise
        except Exception as ex:
            translated = _translate(self, ex)
            if translated is None:
                raise
            raise translated from ex

    _inner.__translates_errors__ = True
    return _inner


class Driver(ABC):
    """
    Abstract base class for storage drivers.

    A driver talks to exactly one backend location described by a disk
    configuration. Every contract method defined by a subclass is wrapped
    with ``translate_errors`` when the subclass is created.
    """

    driver_name: str = None

    # Model used to validate the disk configuration handed to the driver.
    config_model: Type[DiskConfig] = DiskConfig

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        for name in CONTRACT_METHODS:
            method = cls.__dict__.get(name)
            if method is None or not callable(method) or getattr(method, "__translates_errors__", False):
                continue
            setattr(cls, name, translate_errors(method))

    def __init__(self, config: DiskConfig):
        self.config = self._validate_config(config)
        self.name = self.config.name

    def _validate_config(self, config) -> DiskConfig:
        if isinstance(config, self.config_model):
            return config
        if isinstance(config, BaseModel):
            config = config.model_dump()
        return self.config_model.model_validate(config)

    def __repr__(self):
        return f"<{self.__class__.__name__} disk={self.name!r}>"

    def translate_error(self, error: Exception) -> Optional[StorageError]:
        """
        Map a backend specific error onto the storage error taxonomy.

        Return ``None`` to let the original error propagate.
        """
        return None

    async def stats(self, path: str) -> Any:
        """Get backend file information, raising if the file does not exist."""
        raise NotImplementedError

    @abstractmethod
    def url(self, path: str) -> str:
        """Get the full URL of the file."""
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Determine if a file exists on the disk."""
        pass

    @abstractmethod
    async def size(self, path: str) -> int:
        """Get the size of a file in bytes."""
        pass

    @abstractmethod
    async def last_modified(self, path: str) -> int:
        """Get the last modification time as epoch milliseconds."""
        pass

    @abstractmethod
    async def put(self, data: PutData, path: str) -> Dict[str, Any]:
        """
        Write data to the given path.

        Args:
            data: bytes, str, a binary file-like object, an iterable of
                byte chunks or a ``ByteSource``
            path: Destination path on the disk

        Returns:
            Backend fields to merge into the put result
        """
        pass

    @abstractmethod
    async def get(self, path: str) -> BinaryIO:
        """Open a readable binary stream on the file."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete a file."""
        pass

    @abstractmethod
    async def copy(self, path: str, new_path: str) -> None:
        """Copy a file to a new location."""
        pass

    @abstractmethod
    async def move(self, path: str, new_path: str) -> None:
        """Move a file to a new location."""
        pass

    @abstractmethod
    async def make_dir(self, dir: str) -> str:
        """Create the given directory including any needed parents."""
        pass

    @abstractmethod
    async def remove_dir(self, dir: str) -> str:
        """Remove the given directory and all of its files."""
        pass

    async def close(self) -> None:
        """Release any connection held by the driver."""
        pass

    @staticmethod
    def source(data: PutData) -> ByteSource:
        """Normalize ``put`` input."""
        return ByteSource.from_data(data)
