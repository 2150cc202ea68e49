"""
Unit tests for the FTP driver and idle connection reuse.
"""

import asyncio
import ftplib

import pytest

from filestorage.models.disk import FtpDiskConfig
from filestorage.storage.drivers.connection import IdleConnection
from filestorage.storage.drivers.ftp import FtpDriver
from filestorage.storage.errors import InvalidPathError, MoveFailedError, StorageFileNotFoundError


class FakeFTP:
    """In-memory stand-in for ftplib.FTP."""

    def __init__(self):
        self.files = {}
        self.dirs = {""}
        self.closed = False
        self.pending_rename = None
        self.fail_rename = False

    def mkd(self, path):
        if path in self.dirs:
            raise ftplib.error_perm("550 Directory exists")
        self.dirs.add(path)
        return path

    def storbinary(self, cmd, fp):
        verb, path = cmd.split(" ", 1)
        data = fp.read()
        if verb == "APPE":
            self.files[path] = self.files.get(path, b"") + data
        else:
            self.files[path] = data
        return "226 Transfer complete"

    def retrbinary(self, cmd, callback):
        path = cmd.split(" ", 1)[1]
        if path not in self.files:
            raise ftplib.error_perm("550 No such file")
        callback(self.files[path])
        return "226 Transfer complete"

    def size(self, path):
        if path not in self.files:
            raise ftplib.error_perm("550 No such file")
        return len(self.files[path])

    def voidcmd(self, cmd):
        if cmd.startswith("MDTM"):
            path = cmd.split(" ", 1)[1]
            if path not in self.files:
                raise ftplib.error_perm("550 No such file")
            return "213 20240102030405"
        if cmd.startswith("RNTO"):
            target = cmd.split(" ", 1)[1]
            if self.fail_rename:
                raise ftplib.error_perm("553 Rename refused")
            self.files[target] = self.files.pop(self.pending_rename)
        return "200 OK"

    def sendcmd(self, cmd):
        path = cmd.split(" ", 1)[1]
        if path not in self.files:
            raise ftplib.error_perm("550 No such file")
        self.pending_rename = path
        return "350 Ready"

    def delete(self, path):
        if path not in self.files:
            raise ftplib.error_perm("550 No such file")
        del self.files[path]

    def pwd(self):
        return "/"

    def cwd(self, path):
        if path not in self.dirs and path != "/":
            raise ftplib.error_perm("550 No such directory")

    def close(self):
        self.closed = True


@pytest.fixture
def fake_ftp():
    return FakeFTP()


@pytest.fixture
def driver(fake_ftp, monkeypatch):
    driver = FtpDriver(FtpDiskConfig(name="ftp", driver="ftp", host="ftp.example.com", root="/srv", idle_timeout=0.05))
    connects = []

    def connect():
        connects.append(fake_ftp)
        return fake_ftp

    monkeypatch.setattr(driver.connection, "_connect", connect)
    driver.connects = connects
    return driver


class TestFtpDriver:
    """Test cases for FtpDriver against a fake server."""

    def test_url(self):
        """Test default and public URLs."""
        plain = FtpDriver(FtpDiskConfig(name="f", driver="ftp", host="h", port=2121, root="/pub"))
        assert plain.url("a.txt") == "ftp://h:2121/pub/a.txt"
        public = FtpDriver(FtpDiskConfig(name="f", driver="ftp", host="h", public_url="https://files.example.com"))
        assert public.url("a.txt") == "https://files.example.com/a.txt"

    @pytest.mark.asyncio
    async def test_put_get(self, driver, fake_ftp):
        """Test uploading and downloading through one connection."""
        result = await driver.put(b"hello", "dir/greet.txt")
        assert result["message"] == "Uploading success!"
        assert result["code"] == 226
        assert fake_ftp.files["/srv/dir/greet.txt"] == b"hello"

        stream = await driver.get("dir/greet.txt")
        try:
            assert stream.read() == b"hello"
        finally:
            stream.close()

        assert len(driver.connects) == 1

    @pytest.mark.asyncio
    async def test_stats(self, driver):
        """Test size, exists and MDTM based last_modified."""
        await driver.put(b"12345", "a.txt")
        assert await driver.exists("a.txt")
        assert not await driver.exists("b.txt")
        assert await driver.size("a.txt") == 5
        assert await driver.last_modified("a.txt") == 1704164645000

    @pytest.mark.asyncio
    async def test_missing_file(self, driver):
        """Test that reply 550 raises StorageFileNotFoundError."""
        with pytest.raises(StorageFileNotFoundError):
            await driver.get("missing.txt")
        with pytest.raises(StorageFileNotFoundError):
            await driver.delete("missing.txt")

    @pytest.mark.asyncio
    async def test_move(self, driver, fake_ftp):
        """Test rename and rename failure."""
        await driver.put(b"x", "a.txt")
        await driver.move("a.txt", "b.txt")
        assert "/srv/b.txt" in fake_ftp.files
        assert "/srv/a.txt" not in fake_ftp.files

        fake_ftp.fail_rename = True
        with pytest.raises(MoveFailedError):
            await driver.move("b.txt", "c.txt")

    def test_root_path(self, driver):
        """Test that remote paths are normalized below the root."""
        assert driver.root_path("a/./b.txt") == "/srv/a/b.txt"
        assert driver.root_path("/a.txt") == "/srv/a.txt"
        assert driver.root_path("a/..") == "/srv"
        for path in ("..", "../x", "a/../../x"):
            with pytest.raises(InvalidPathError):
                driver.root_path(path)

    @pytest.mark.asyncio
    async def test_paths_outside_root(self, driver, fake_ftp):
        """Test that operations never reach above the root."""
        fake_ftp.files["/etc/passwd"] = b"root:x"
        with pytest.raises(InvalidPathError):
            await driver.get("../etc/passwd")
        with pytest.raises(InvalidPathError):
            await driver.put(b"x", "../outside.txt")
        with pytest.raises(InvalidPathError):
            await driver.remove_dir("")
        assert fake_ftp.files == {"/etc/passwd": b"root:x"}
        assert driver.connects == []

    @pytest.mark.asyncio
    async def test_append_and_copy(self, driver, fake_ftp):
        """Test APPE and copy via download and upload."""
        await driver.put(b"a", "log.txt")
        await driver.append(b"b", "log.txt")
        await driver.copy("log.txt", "copy.txt")
        assert fake_ftp.files["/srv/copy.txt"] == b"ab"

    @pytest.mark.asyncio
    async def test_idle_close(self, driver, fake_ftp):
        """Test that the connection closes after the idle grace period."""
        await driver.put(b"x", "a.txt")
        assert driver.connection.connected
        await asyncio.sleep(0.2)
        assert not driver.connection.connected
        assert fake_ftp.closed

        await driver.exists("a.txt")
        assert len(driver.connects) == 2
        await driver.close()
        assert not driver.connection.connected


class Client:
    def __init__(self):
        self.closed = False


class TestIdleConnection:
    """Test cases for IdleConnection."""

    @pytest.mark.asyncio
    async def test_reuse_within_grace_period(self):
        """Test that back-to-back sessions share one connection."""
        clients = []

        def connect():
            clients.append(Client())
            return clients[-1]

        connection = IdleConnection(connect, lambda c: setattr(c, "closed", True), idle_timeout=0.1)
        async with connection.session() as first:
            pass
        async with connection.session() as second:
            pass

        assert first is second
        assert len(clients) == 1
        await connection.close()
        assert clients[0].closed

    @pytest.mark.asyncio
    async def test_close_skipped_while_leased(self):
        """Test that the idle close never fires during a lease."""
        connection = IdleConnection(Client, lambda c: setattr(c, "closed", True), idle_timeout=0.01)
        async with connection.session():
            pass

        async with connection.session() as client:
            await asyncio.sleep(0.05)
            assert not client.closed
            assert connection.connected

        await asyncio.sleep(0.05)
        assert client.closed
        assert not connection.connected

    @pytest.mark.asyncio
    async def test_broken_transport_reconnects(self):
        """Test that a transport error drops the client."""
        clients = []

        def connect():
            clients.append(Client())
            return clients[-1]

        connection = IdleConnection(connect, lambda c: setattr(c, "closed", True), idle_timeout=1)
        with pytest.raises(EOFError):
            async with connection.session():
                raise EOFError("connection reset")

        assert not connection.connected
        async with connection.session():
            pass
        assert len(clients) == 2
        await connection.close()
