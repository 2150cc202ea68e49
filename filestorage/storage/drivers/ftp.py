"""
FTP / FTPS driver implementation.

Uses ``ftplib`` from the standard library. One connection per driver is
reused across back-to-back calls and closed after an idle grace period.
"""

import asyncio
import ftplib
import logging
import posixpath
import tempfile
from datetime import datetime, timezone
from typing import Any, BinaryIO, Dict, Optional

from ...models.disk import DriverName, FtpDiskConfig
from ..errors import InvalidPathError, MoveFailedError, StorageError, StorageFileNotFoundError, UnauthenticatedError
from ..sources import SPOOL_MAX_SIZE, PutData
from .base import Driver
from .connection import IdleConnection

logger = logging.getLogger(__name__)


def _reply_code(error: Exception) -> str:
    return str(error)[:3]


class FtpDriver(Driver):
    """FTP implementation of Driver."""

    driver_name = DriverName.FTP.value
    config_model = FtpDiskConfig

    def __init__(self, config: FtpDiskConfig):
        super().__init__(config)
        self.root = self.config.root
        self.connection = IdleConnection(
            self._connect,
            self._disconnect,
            idle_timeout=self.config.idle_timeout,
            label=f"FTP connection to {self.config.host}:{self.config.port}"
        )

    def _connect(self) -> ftplib.FTP:
        ftp = ftplib.FTP_TLS() if self.config.secure else ftplib.FTP()
        if self.config.timeout:
            ftp.connect(self.config.host, self.config.port, timeout=self.config.timeout)
        else:
            ftp.connect(self.config.host, self.config.port)
        ftp.login(self.config.user, self.config.password)
        if self.config.secure:
            ftp.prot_p()
        logger.info(f"[{self.name}] Connected to {self.config.host}:{self.config.port}")
        return ftp

    @staticmethod
    def _disconnect(ftp: ftplib.FTP):
        ftp.close()

    async def _call(self, func, *args):
        """Run a blocking client function on the shared connection."""
        async with self.connection.session() as ftp:
            return await asyncio.to_thread(func, ftp, *args)

    def root_path(self, path: str = "") -> str:
        """
        Remote location of ``path`` below the disk root.

        Raises:
            InvalidPathError: If the path escapes the disk root
        """
        relative = posixpath.normpath(path.lstrip("/") or ".")
        if relative == ".." or relative.startswith("../"):
            raise InvalidPathError(f"Path is outside of the disk root: {path}")
        if relative == ".":
            return self.root or "/"
        return self.root + "/" + relative

    @staticmethod
    def _ensure_dir(ftp: ftplib.FTP, dir: str):
        current = "/" if dir.startswith("/") else ""
        for part in [p for p in dir.split("/") if p]:
            current = posixpath.join(current, part) if current else part
            try:
                ftp.mkd(current)
            except ftplib.error_perm:
                # Already exists
                pass

    def translate_error(self, error: Exception) -> Optional[StorageError]:
        if isinstance(error, ftplib.error_perm):
            code = _reply_code(error)
            if code == "550":
                return StorageFileNotFoundError(str(error))
            if code == "530":
                return UnauthenticatedError(str(error))
        return None

    def url(self, path: str) -> str:
        if self.config.public_url:
            return f"{self.config.public_url}/{path.lstrip('/')}"
        port = f":{self.config.port}" if self.config.port != 21 else ""
        return f"ftp://{self.config.host}{port}{posixpath.join('/', self.root_path(path).lstrip('/'))}"

    async def stats(self, path: str) -> Dict[str, Any]:
        def _stats(ftp: ftplib.FTP, target: str):
            ftp.voidcmd("TYPE I")
            size = ftp.size(target)
            modified = ftp.voidcmd(f"MDTM {target}")[4:].strip()
            return {"size": size, "modified": modified}

        return await self._call(_stats, self.root_path(path))

    async def exists(self, path: str) -> bool:
        def _exists(ftp: ftplib.FTP, target: str):
            try:
                ftp.voidcmd("TYPE I")
                ftp.size(target)
                return True
            except ftplib.error_perm:
                return False

        return await self._call(_exists, self.root_path(path))

    async def size(self, path: str) -> int:
        stats = await self.stats(path)
        return stats["size"]

    async def last_modified(self, path: str) -> int:
        stats = await self.stats(path)
        modified = datetime.strptime(stats["modified"][:14], "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
        return int(modified.timestamp() * 1000)

    async def put(self, data: PutData, path: str) -> Dict[str, Any]:
        source = self.source(data)

        def _put(ftp: ftplib.FTP, target: str):
            self._ensure_dir(ftp, posixpath.dirname(target))
            return ftp.storbinary(f"STOR {target}", source.as_file())

        response = await self._call(_put, self.root_path(path))
        logger.debug(f"[{self.name}] Uploaded {path}: {response}")
        return {
            "success": True,
            "message": "Uploading success!",
            "code": int(_reply_code(response)),
        }

    async def get(self, path: str) -> BinaryIO:
        def _get(ftp: ftplib.FTP, target: str):
            spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
            try:
                ftp.retrbinary(f"RETR {target}", spool.write)
            except Exception:
                spool.close()
                raise
            spool.seek(0)
            return spool

        return await self._call(_get, self.root_path(path))

    async def delete(self, path: str) -> bool:
        await self._call(lambda ftp, target: ftp.delete(target), self.root_path(path))
        return True

    async def copy(self, path: str, new_path: str) -> None:
        stream = await self.get(path)
        try:
            await self.put(stream, new_path)
        finally:
            stream.close()

    async def move(self, path: str, new_path: str) -> None:
        def _move(ftp: ftplib.FTP, source: str, target: str):
            self._ensure_dir(ftp, posixpath.dirname(target))
            ftp.sendcmd(f"RNFR {source}")
            try:
                ftp.voidcmd(f"RNTO {target}")
            except ftplib.Error as ex:
                raise MoveFailedError(f"Cannot move {path} to {new_path}: {ex}") from ex

        await self._call(_move, self.root_path(path), self.root_path(new_path))

    async def append(self, data: PutData, path: str) -> None:
        """Append data to a remote file."""
        source = self.source(data)
        await self._call(
            lambda ftp, target: ftp.storbinary(f"APPE {target}", source.as_file()),
            self.root_path(path)
        )

    async def make_dir(self, dir: str) -> str:
        def _make_dir(ftp: ftplib.FTP, target: str):
            cwd = ftp.pwd()
            try:
                ftp.cwd(target)
            except ftplib.error_perm:
                self._ensure_dir(ftp, target)
                return
            ftp.cwd(cwd)
            raise FileExistsError(f"Directory already exists: {dir}")

        await self._call(_make_dir, self.root_path(dir))
        return dir

    async def remove_dir(self, dir: str) -> str:
        def _remove_tree(ftp: ftplib.FTP, target: str):
            for name, facts in ftp.mlsd(target):
                if name in (".", ".."):
                    continue
                child = posixpath.join(target, name)
                if facts.get("type") == "dir":
                    _remove_tree(ftp, child)
                else:
                    ftp.delete(child)
            ftp.rmd(target)

        target = self.root_path(dir)
        if target == self.root_path():
            raise InvalidPathError(f"Refusing to remove the disk root: {dir!r}")
        await self._call(_remove_tree, target)
        return dir

    async def close(self) -> None:
        await self.connection.close()
