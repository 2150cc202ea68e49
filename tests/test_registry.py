"""
Unit tests for disk resolution and the driver registry.
"""

import pytest

from filestorage.models.disk import DiskConfig, DriverName, LocalDiskConfig
from filestorage.storage.drivers.local import LocalDriver
from filestorage.storage.errors import (
    DiskNotDefinedError,
    DriverNotDeclaredError,
    DuplicatedDiskNameError,
    MissingDefaultDiskError,
    StorageConfigurationError,
)
from filestorage.storage.registry import DriverRegistry
from filestorage.storage.resolver import resolve_default_disk_name, resolve_disk_configs
from filestorage.storage.settings import StorageSettings


def local_disk(name, **kwargs):
    return LocalDiskConfig(name=name, driver=DriverName.LOCAL, **kwargs)


class TestResolveDiskConfigs:
    """Test cases for default disk resolution."""

    def test_empty_configuration_synthesizes_local_disk(self):
        """Test that no disks yields the implicit local disk."""
        configs, default = resolve_disk_configs(StorageSettings())
        assert len(configs) == 1
        assert default.name == "local"
        assert default.driver == "local"
        assert default.root == "storage"

    def test_single_disk_is_default(self):
        """Test that a single disk becomes the default without a name."""
        _, default = resolve_disk_configs(StorageSettings(disk_configs=[local_disk("only")]))
        assert default.name == "only"

    def test_marked_disk_is_default(self):
        """Test that the single disk marked is_default wins."""
        settings = StorageSettings(disk_configs=[local_disk("a"), local_disk("b", is_default=True)])
        _, default = resolve_disk_configs(settings)
        assert default.name == "b"

    def test_explicit_name_wins(self):
        """Test that default_disk_name beats is_default markers."""
        settings = StorageSettings(
            default_disk_name="a",
            disk_configs=[local_disk("a"), local_disk("b", is_default=True)]
        )
        _, default = resolve_disk_configs(settings)
        assert default.name == "a"

    def test_ambiguous_default(self):
        """Test that several disks without a default are rejected."""
        settings = StorageSettings(disk_configs=[local_disk("a"), local_disk("b")])
        with pytest.raises(MissingDefaultDiskError):
            resolve_disk_configs(settings)

    def test_several_marked_defaults(self):
        """Test that more than one is_default marker is ambiguous."""
        with pytest.raises(MissingDefaultDiskError):
            resolve_default_disk_name([local_disk("a", is_default=True), local_disk("b", is_default=True)])

    def test_duplicated_names(self):
        """Test that duplicate names fail before anything else."""
        settings = StorageSettings(
            default_disk_name="missing",
            disk_configs=[local_disk("a"), local_disk("a")]
        )
        with pytest.raises(DuplicatedDiskNameError):
            resolve_disk_configs(settings)

    def test_unknown_default_name(self):
        """Test that an unknown default disk is reported by name."""
        settings = StorageSettings(default_disk_name="nope", disk_configs=[local_disk("a")])
        with pytest.raises(DiskNotDefinedError) as exc_info:
            resolve_disk_configs(settings)
        assert str(exc_info.value) == "Given disk is not defined: nope"
        assert exc_info.value.disk_name == "nope"

    def test_configuration_errors_share_base(self):
        """Test that configuration errors subclass StorageConfigurationError."""
        for error in (DuplicatedDiskNameError, MissingDefaultDiskError, DiskNotDefinedError, DriverNotDeclaredError):
            assert issubclass(error, StorageConfigurationError)


class TestDriverRegistry:
    """Test cases for DriverRegistry."""

    def test_builtin_local_is_resolved_lazily(self, tmp_path):
        """Test that the local driver is imported on first use."""
        registry = DriverRegistry()
        driver = registry.create(local_disk("local", root=str(tmp_path)))
        assert isinstance(driver, LocalDriver)
        assert driver.name == "local"

    def test_unknown_identifier(self):
        """Test that an unknown driver name is not declared."""
        registry = DriverRegistry()
        with pytest.raises(DriverNotDeclaredError) as exc_info:
            registry.resolve("dropbox")
        assert str(exc_info.value) == "Driver 'dropbox' is not declared."

    def test_known_but_not_shipped(self):
        """Test that known drivers without implementation are not installed."""
        registry = DriverRegistry()
        with pytest.raises(DriverNotDeclaredError) as exc_info:
            registry.resolve(DriverName.GCS)
        assert "not installed" in str(exc_info.value)

    def test_builtin_with_missing_library(self):
        """Test that a built-in whose module cannot be imported is not installed."""
        registry = DriverRegistry(builtins={"s3": "filestorage_missing_module:S3Driver"})
        with pytest.raises(DriverNotDeclaredError) as exc_info:
            registry.resolve("s3")
        assert "not installed" in str(exc_info.value)

    def test_register_custom_driver(self):
        """Test that registered drivers are resolved by identifier."""
        registry = DriverRegistry()
        registry.register("memory", LocalDriver)
        assert registry.is_registered("memory")
        assert "memory" in registry.identifiers()
        assert registry.resolve("memory") is LocalDriver

    def test_custom_drivers_checked_first(self):
        """Test that per-settings custom drivers shadow the registry."""
        registry = DriverRegistry()
        sentinel = object()

        def factory(config):
            return sentinel

        assert registry.resolve("local", {"local": factory}) is factory
        assert registry.create(DiskConfig(name="x", driver="local"), {"local": factory}) is sentinel

    def test_inline_driver_class(self, tmp_path):
        """Test that a driver class given inline is used as its own factory."""
        registry = DriverRegistry()
        driver = registry.create(DiskConfig(name="inline", driver=LocalDriver, root=str(tmp_path)))
        assert isinstance(driver, LocalDriver)
        assert driver.root == tmp_path

    def test_construction_failure(self):
        """Test that a failing factory is reported as DriverNotDeclaredError."""
        registry = DriverRegistry()

        def broken(config):
            raise RuntimeError("boom")

        with pytest.raises(DriverNotDeclaredError) as exc_info:
            registry.create(DiskConfig(name="x", driver=broken))
        assert "boom" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_register_requires_callable(self):
        """Test that a non-callable factory is rejected."""
        with pytest.raises(TypeError):
            DriverRegistry().register("bad", "not callable")
