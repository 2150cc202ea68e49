"""
Local filesystem driver implementation.

Files are stored below the configured root directory. Blocking filesystem
calls run in a worker thread so the event loop is never held.
"""

import asyncio
import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional

from ...models.disk import DriverName, LocalDiskConfig
from ..errors import InvalidPathError, MoveFailedError, StorageError, StorageFileNotFoundError, UnauthenticatedError
from ..sources import PutData
from .base import Driver

logger = logging.getLogger(__name__)


class LocalDriver(Driver):
    """
    Filesystem implementation of Driver.

    Paths are interpreted relative to ``root``; a relative root resolves
    from the current working directory.
    """

    driver_name = DriverName.LOCAL.value
    config_model = LocalDiskConfig

    def __init__(self, config: LocalDiskConfig):
        super().__init__(config)
        self.root = Path(self.config.root)
        self.public_url = self.config.public_url
        logger.debug(f"Local disk '{self.name}' rooted at {self.root}")

    def root_path(self, path: str) -> Path:
        """
        Location of ``path`` below the disk root.

        Raises:
            InvalidPathError: If the path escapes the disk root
        """
        candidate = self.root / path.lstrip("/")
        if not candidate.resolve().is_relative_to(self.root.resolve()):
            raise InvalidPathError(f"Path is outside of the disk root: {path}")
        return candidate

    def translate_error(self, error: Exception) -> Optional[StorageError]:
        if isinstance(error, OSError):
            if error.errno == errno.ENOENT:
                return StorageFileNotFoundError(str(error))
            if error.errno in (errno.EACCES, errno.EPERM):
                return UnauthenticatedError(str(error))
        return None

    async def stats(self, path: str) -> os.stat_result:
        return await asyncio.to_thread(os.stat, self.root_path(path))

    def url(self, path: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{path.lstrip('/')}"
        return str(self.root_path(path))

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self.root_path(path).exists)

    async def size(self, path: str) -> int:
        stats = await self.stats(path)
        return stats.st_size

    async def last_modified(self, path: str) -> int:
        stats = await self.stats(path)
        return int(stats.st_mtime * 1000)

    async def put(self, data: PutData, path: str) -> Dict[str, Any]:
        source = self.source(data)
        target = self.root_path(path)

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as dest:
                for chunk in source.chunks():
                    dest.write(chunk)

        await asyncio.to_thread(_write)
        logger.debug(f"[{self.name}] Wrote {target}")
        return {
            "success": True,
            "message": "Uploading success!",
        }

    async def get(self, path: str) -> BinaryIO:
        return await asyncio.to_thread(open, self.root_path(path), "rb")

    async def delete(self, path: str) -> bool:
        await asyncio.to_thread(self.root_path(path).unlink)
        return True

    async def copy(self, path: str, new_path: str) -> None:
        source, target = self.root_path(path), self.root_path(new_path)

        def _copy():
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)

        await asyncio.to_thread(_copy)

    async def move(self, path: str, new_path: str) -> None:
        source, target = self.root_path(path), self.root_path(new_path)

        def _move():
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, target)

        try:
            await asyncio.to_thread(_move)
        except OSError as ex:
            if ex.errno == errno.ENOENT:
                raise
            raise MoveFailedError(f"Cannot move {path} to {new_path}: {ex}") from ex

    async def append(self, data: PutData, path: str) -> None:
        """Append data to a file, creating it when missing."""
        source = self.source(data)
        target = self.root_path(path)

        def _append():
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "ab") as dest:
                for chunk in source.chunks():
                    dest.write(chunk)

        await asyncio.to_thread(_append)

    async def make_dir(self, dir: str) -> str:
        target = self.root_path(dir)
        if await asyncio.to_thread(target.exists):
            raise FileExistsError(f"Directory already exists: {dir}")
        await asyncio.to_thread(target.mkdir, parents=True)
        return dir

    async def remove_dir(self, dir: str) -> str:
        target = self.root_path(dir)
        if target.resolve() == self.root.resolve():
            raise InvalidPathError(f"Refusing to remove the disk root: {dir!r}")
        await asyncio.to_thread(shutil.rmtree, target)
        return dir
