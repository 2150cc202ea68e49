"""
Normalization of the data handed to ``put``.

Callers may pass bytes, a string, a binary file-like object or an iterable
of byte chunks. ``ByteSource.from_data`` turns any of them into a single
representation so drivers never branch on the input type.
"""

import io
import tempfile
from typing import BinaryIO, Iterable, Iterator, Union

DEFAULT_CHUNK_SIZE = 4194304

# Sources larger than this are spooled to a temporary file when a driver
# needs a seekable file object.
SPOOL_MAX_SIZE = 8 * 1024 * 1024

PutData = Union[bytes, bytearray, memoryview, str, BinaryIO, Iterable[bytes], "ByteSource"]


class ByteSource:
    """A one-shot readable source of bytes."""

    def __init__(self, chunks: Iterable[bytes], fileobj: BinaryIO = None):
        self._chunks = chunks
        self._fileobj = fileobj
        self._consumed = False

    @classmethod
    def from_data(cls, data: PutData) -> "ByteSource":
        """Build a source from any supported ``put`` input."""
        if isinstance(data, ByteSource):
            return data
        if isinstance(data, str):
            data = data.encode("utf-8")
        if isinstance(data, (bytes, bytearray, memoryview)):
            return cls.from_bytes(bytes(data))
        if hasattr(data, "read"):
            return cls(_read_in_chunks(data, DEFAULT_CHUNK_SIZE), fileobj=data)
        if hasattr(data, "__iter__"):
            return cls(_ensure_bytes(data))
        raise TypeError(f"Unsupported data type for put: {type(data).__name__}")

    @classmethod
    def from_bytes(cls, data: bytes) -> "ByteSource":
        return cls([data] if data else [], fileobj=io.BytesIO(data))

    def chunks(self) -> Iterator[bytes]:
        """Iterate over the content. A source can only be read once."""
        if self._consumed:
            raise ValueError("Byte source has already been consumed")
        self._consumed = True
        yield from self._chunks

    def read(self) -> bytes:
        """Read the whole content into memory."""
        return b"".join(self.chunks())

    def as_file(self) -> BinaryIO:
        """
        Return a readable binary file object positioned on the content.

        File-like inputs are handed over as they are; other inputs are
        spooled into a temporary file.
        """
        if self._fileobj is not None and not self._consumed:
            self._consumed = True
            return self._fileobj
        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
        for chunk in self.chunks():
            spool.write(chunk)
        spool.seek(0)
        return spool


def _read_in_chunks(readable, buffer_size: int) -> Iterator[bytes]:
    """Read in chunks from a readable object."""
    x = readable.read(buffer_size)
    while x:
        if isinstance(x, str):
            x = x.encode("utf-8")
        yield x
        x = readable.read(buffer_size)


def _ensure_bytes(chunks: Iterable) -> Iterator[bytes]:
    for chunk in chunks:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        yield bytes(chunk)
