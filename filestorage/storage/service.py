"""
Storage façade.

``Storage`` is the interface application code works with: it resolves the
configured disks, owns the active driver and runs the put pipeline
(unique names and plugin hooks) around the driver calls.
"""

import logging
import posixpath
import tempfile
import uuid
from typing import Any, BinaryIO, List, Optional, Tuple

import httpx

from ..models.disk import DiskConfig
from ..models.results import ImageStats, PutResult
from .drivers.base import Driver
from .images import read_image_stats
from .plugins.base import Plugin
from .registry import DriverRegistry, default_registry
from .resolver import resolve_disk_configs
from .settings import StorageSettings
from .sources import SPOOL_MAX_SIZE, ByteSource, PutData

logger = logging.getLogger(__name__)


def unique_path(path: str) -> str:
    """Replace the base name of ``path`` by a uuid4, keeping directory and extension."""
    directory, name = posixpath.split(path)
    ext = posixpath.splitext(name)[1]
    return posixpath.join(directory, f"{uuid.uuid4()}{ext}")


class Storage:
    """
    Façade over one active disk.

    A ``Storage`` owns its driver; handles returned by ``disk()`` are
    independent façades with their own driver and plugin instances.
    ``configure()`` must not be called while operations are in flight.
    """

    def __init__(self, settings: Optional[StorageSettings] = None, registry: Optional[DriverRegistry] = None):
        self.registry = registry or default_registry
        self.settings: StorageSettings = None
        self.driver: Driver = None
        self.plugins: List[Plugin] = []
        self.configure(settings or StorageSettings())

    def configure(self, settings: Optional[StorageSettings] = None, **overrides) -> "Storage":
        """
        Apply a configuration.

        The new driver and plugins are fully built before they replace the
        current ones, so a failure leaves the façade untouched.

        Raises:
            StorageConfigurationError: If the configuration cannot be resolved
        """
        settings = settings or self.settings or StorageSettings()
        if overrides:
            settings = settings.with_overrides(**overrides)

        _, default_config = resolve_disk_configs(settings)
        driver, plugins = self._build(settings, default_config)

        self.settings = settings
        self.driver = driver
        self.plugins = plugins
        logger.info(f"Storage configured on disk '{driver.name}' with {len(plugins)} plugin(s)")
        return self

    def _build(self, settings: StorageSettings, config: DiskConfig) -> Tuple[Driver, List[Plugin]]:
        driver = self.registry.create(config, settings.custom_drivers)

        plugins = []
        for factory in settings.plugins:
            plugin = factory()
            plugin.init(driver)
            plugins.append(plugin)
        return driver, plugins

    def disk(self, name: Optional[str] = None, **overrides) -> "Storage":
        """
        Return a new façade scoped to another disk.

        The current façade and its settings are left untouched.

        Raises:
            DiskNotDefinedError: If no disk carries that name
        """
        update = dict(overrides)
        if name is not None:
            update["default_disk_name"] = name
        return Storage(self.settings.with_overrides(**update), registry=self.registry)

    @property
    def name(self) -> str:
        return self.driver.name

    @property
    def driver_name(self) -> str:
        return self.driver.config.driver_identifier

    def __repr__(self):
        return f"<Storage disk={self.name!r} driver={self.driver_name!r}>"

    async def put(self, data: PutData, path: str) -> PutResult:
        """
        Store data under ``path`` and run the plugin hooks.

        Returns:
            PutResult merged from the driver response and plugin outputs
        """
        result = PutResult(name=posixpath.basename(path), path=path)

        if self.settings.unique_file_name:
            result.path = unique_path(path)

        source = ByteSource.from_data(data)

        for plugin in self.plugins:
            hook = plugin.hook("before_put")
            if plugin.before_put_key and hook:
                self._store_hook_value(result, plugin.before_put_key, await hook(source, result.path), plugin)

        result.merge(await self.driver.put(source, result.path) or {})

        for plugin in self.plugins:
            hook = plugin.hook("after_put")
            if plugin.after_put_key and hook:
                self._store_hook_value(result, plugin.after_put_key, await hook(result.path), plugin)

        logger.debug(f"[{self.name}] Stored {result.path}")
        return result

    def _store_hook_value(self, result: PutResult, key: str, value: Any, plugin: Plugin) -> None:
        if value is None:
            return
        if key in (result.model_extra or {}):
            logger.warning(f"Plugin {plugin!r} overwrites put result key '{key}'")
        result.merge({key: value})

    async def get(self, path: str) -> BinaryIO:
        return await self.driver.get(path)

    async def delete(self, path: str) -> bool:
        return await self.driver.delete(path)

    async def exists(self, path: str) -> bool:
        return await self.driver.exists(path)

    async def size(self, path: str) -> int:
        return await self.driver.size(path)

    async def last_modified(self, path: str) -> int:
        return await self.driver.last_modified(path)

    async def copy(self, path: str, new_path: str) -> None:
        return await self.driver.copy(path, new_path)

    async def move(self, path: str, new_path: str) -> None:
        return await self.driver.move(path, new_path)

    async def make_dir(self, dir: str) -> str:
        return await self.driver.make_dir(dir)

    async def remove_dir(self, dir: str) -> str:
        return await self.driver.remove_dir(dir)

    def url(self, path: str) -> str:
        return self.driver.url(path)

    async def append(self, data: PutData, path: str) -> None:
        """
        Append data to a file.

        Raises:
            NotImplementedError: If the active driver cannot append
        """
        append = getattr(self.driver, "append", None)
        if append is None:
            raise NotImplementedError(f"Driver '{self.driver_name}' does not support append")
        return await append(data, path)

    async def image_stats(self, path: str, keep_buffer: bool = False) -> ImageStats:
        """
        Describe an image stored on the active disk.

        Raises:
            ValueError: If the file is not a decodable image
        """
        return await read_image_stats(self.driver, path, keep_buffer=keep_buffer)

    async def upload_image_from_external_uri(self,
                                             uri: str,
                                             path: str,
                                             ignore_header_content_type: bool = False) -> PutResult:
        """
        Download an image and store it through ``put``.

        Args:
            uri: Remote location of the image
            path: Destination path on the active disk
            ignore_header_content_type: Skip the ``image/*`` content type check

        Raises:
            ValueError: If the remote resource is not announced as an image
            httpx.HTTPError: If the download fails
        """
        async with httpx.AsyncClient(follow_redirects=True) as client:
            if not ignore_header_content_type:
                head = await client.head(uri)
                head.raise_for_status()
                content_type = head.headers.get("content-type", "")
                if not content_type.startswith("image/"):
                    raise ValueError(f"Remote file is not an image: {uri} ({content_type or 'no content type'})")

            spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
            try:
                async with client.stream("GET", uri) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes():
                        spool.write(chunk)
                spool.seek(0)
                logger.info(f"Downloaded {uri} for {path}")
                return await self.put(spool, path)
            finally:
                spool.close()

    async def close(self) -> None:
        """Release the connections held by the active driver."""
        await self.driver.close()
        logger.debug(f"Disk '{self.name}' closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
