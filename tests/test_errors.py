"""
Unit tests for backend error normalization.
"""

import errno
import ftplib
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from filestorage.models.disk import DiskConfig, FtpDiskConfig, S3DiskConfig
from filestorage.storage.drivers.base import Driver
from filestorage.storage.drivers.ftp import FtpDriver
from filestorage.storage.drivers.local import LocalDriver
from filestorage.storage.drivers.s3 import S3Driver
from filestorage.storage.errors import (
    MoveFailedError,
    StorageError,
    StorageFileNotFoundError,
    UnauthenticatedError,
)


def client_error(code, operation="HeadObject"):
    return ClientError({"Error": {"Code": code, "Message": f"{code} message"}}, operation)


class FlakyDriver(Driver):
    """Driver raising configurable errors from every operation."""

    error = None

    def translate_error(self, error):
        if isinstance(error, KeyError):
            return StorageFileNotFoundError(f"missing {error}")
        return None

    def url(self, path):
        raise self.error

    async def exists(self, path):
        raise self.error

    async def size(self, path):
        raise self.error

    async def last_modified(self, path):
        raise self.error

    async def put(self, data, path):
        raise self.error

    async def get(self, path):
        raise self.error

    async def delete(self, path):
        raise self.error

    async def copy(self, path, new_path):
        raise self.error

    async def move(self, path, new_path):
        raise self.error

    async def make_dir(self, dir):
        raise self.error

    async def remove_dir(self, dir):
        raise self.error


@pytest.fixture
def flaky():
    return FlakyDriver(DiskConfig(name="flaky", driver="flaky"))


class TestTranslateErrors:
    """Test cases for the error translation wrapper."""

    def test_contract_methods_are_wrapped(self):
        """Test that subclasses get their contract methods wrapped."""
        assert FlakyDriver.get.__translates_errors__
        assert FlakyDriver.url.__translates_errors__
        assert LocalDriver.move.__translates_errors__

    @pytest.mark.asyncio
    async def test_translated_error_keeps_cause(self, flaky):
        """Test that a translated error is raised from the original."""
        flaky.error = KeyError("a.txt")
        with pytest.raises(StorageFileNotFoundError) as exc_info:
            await flaky.get("a.txt")
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert "a.txt" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_untranslated_error_propagates(self, flaky):
        """Test that unknown errors are re-raised unmodified."""
        flaky.error = RuntimeError("boom")
        with pytest.raises(RuntimeError, match="boom"):
            await flaky.put(b"x", "a.txt")

    @pytest.mark.asyncio
    async def test_taxonomy_errors_pass_through(self, flaky):
        """Test that storage errors are not translated again."""
        flaky.error = MoveFailedError("already normalized")
        with pytest.raises(MoveFailedError, match="already normalized"):
            await flaky.move("a", "b")

    def test_sync_method_is_translated(self, flaky):
        """Test that url (not a coroutine) is wrapped too."""
        flaky.error = KeyError("u")
        with pytest.raises(StorageFileNotFoundError):
            flaky.url("u")

    def test_file_not_found_is_builtin_compatible(self):
        """Test that StorageFileNotFoundError is also a FileNotFoundError."""
        assert issubclass(StorageFileNotFoundError, FileNotFoundError)
        assert issubclass(StorageFileNotFoundError, StorageError)


class TestLocalErrors:
    """Test cases for local filesystem error mapping."""

    @pytest.fixture
    def driver(self, tmp_path):
        return LocalDriver(DiskConfig(name="local", driver="local", root=str(tmp_path)))

    def test_mapping(self, driver):
        """Test errno based mapping."""
        assert isinstance(driver.translate_error(OSError(errno.ENOENT, "x")), StorageFileNotFoundError)
        assert isinstance(driver.translate_error(OSError(errno.EACCES, "x")), UnauthenticatedError)
        assert isinstance(driver.translate_error(OSError(errno.EPERM, "x")), UnauthenticatedError)
        assert driver.translate_error(OSError(errno.ENOSPC, "x")) is None
        assert driver.translate_error(ValueError("x")) is None

    @pytest.mark.asyncio
    async def test_move_missing_source(self, driver):
        """Test that moving a missing file is a not-found error."""
        with pytest.raises(StorageFileNotFoundError):
            await driver.move("missing.txt", "other.txt")

    @pytest.mark.asyncio
    async def test_move_onto_directory_fails(self, driver, tmp_path):
        """Test that a backend move failure is a MoveFailedError."""
        (tmp_path / "file.txt").write_bytes(b"x")
        (tmp_path / "dir").mkdir()
        (tmp_path / "dir" / "inner.txt").write_bytes(b"y")
        with pytest.raises(MoveFailedError):
            await driver.move("file.txt", "dir")


class TestS3Errors:
    """Test cases for S3 error mapping."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def driver(self, client):
        return S3Driver(S3DiskConfig(name="s3", driver="s3", bucket_name="bucket"), client=client)

    @pytest.mark.parametrize("code", ["NoSuchKey", "NotFound", "404"])
    def test_not_found_codes(self, driver, code):
        """Test not-found error codes."""
        assert isinstance(driver.translate_error(client_error(code)), StorageFileNotFoundError)

    @pytest.mark.parametrize("code", ["AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "ExpiredToken", "403"])
    def test_unauthenticated_codes(self, driver, code):
        """Test credential error codes."""
        assert isinstance(driver.translate_error(client_error(code)), UnauthenticatedError)

    def test_missing_credentials(self, driver):
        """Test that botocore credential errors are unauthenticated."""
        assert isinstance(driver.translate_error(NoCredentialsError()), UnauthenticatedError)

    def test_other_codes_propagate(self, driver):
        """Test that unrelated codes are not translated."""
        assert driver.translate_error(client_error("SlowDown")) is None

    @pytest.mark.asyncio
    async def test_get_missing_key(self, driver, client):
        """Test that a missing key raises StorageFileNotFoundError."""
        client.get_object.side_effect = client_error("NoSuchKey", "GetObject")
        with pytest.raises(StorageFileNotFoundError) as exc_info:
            await driver.get("missing.txt")
        assert isinstance(exc_info.value.__cause__, ClientError)

    @pytest.mark.asyncio
    async def test_exists_on_missing_key(self, driver, client):
        """Test that exists() answers False instead of raising."""
        client.head_object.side_effect = client_error("404")
        assert await driver.exists("missing.txt") is False

    @pytest.mark.asyncio
    async def test_move_copy_failure(self, driver, client):
        """Test that a failing copy during move is a MoveFailedError."""
        client.copy_object.side_effect = client_error("InternalError", "CopyObject")
        with pytest.raises(MoveFailedError):
            await driver.move("a.txt", "b.txt")
        client.delete_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_move_unauthenticated(self, driver, client):
        """Test that a rejected copy during move stays unauthenticated."""
        client.copy_object.side_effect = client_error("AccessDenied", "CopyObject")
        with pytest.raises(UnauthenticatedError):
            await driver.move("a.txt", "b.txt")

    @pytest.mark.asyncio
    async def test_put_result_fields(self, driver, client):
        """Test the backend fields returned by put."""
        result = await driver.put(b"hello", "greet.txt")
        assert result["Bucket"] == "bucket"
        assert result["Key"] == "greet.txt"
        assert result["Location"] == "https://bucket.s3.amazonaws.com/greet.txt"
        args, kwargs = client.upload_fileobj.call_args
        assert args[1:] == ("bucket", "greet.txt")
        assert kwargs["ExtraArgs"] == {"ACL": "public-read"}


class TestFtpErrors:
    """Test cases for FTP reply code mapping."""

    @pytest.fixture
    def driver(self):
        return FtpDriver(FtpDiskConfig(name="ftp", driver="ftp", host="ftp.example.com"))

    def test_mapping(self, driver):
        """Test reply code based mapping."""
        assert isinstance(
            driver.translate_error(ftplib.error_perm("550 No such file")), StorageFileNotFoundError
        )
        assert isinstance(
            driver.translate_error(ftplib.error_perm("530 Login incorrect")), UnauthenticatedError
        )
        assert driver.translate_error(ftplib.error_perm("553 Not allowed")) is None
        assert driver.translate_error(ftplib.error_temp("450 Busy")) is None
