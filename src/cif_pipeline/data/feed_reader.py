"""Line readers for CIF feeds, with transparent gzip detection."""

import gzip
import io
from collections.abc import Iterator
from typing import BinaryIO

GZIP_MAGIC = b"\x1f\x8b"


class _ReplayStream(io.RawIOBase):
    """Serve already-consumed bytes before the rest of a non-seekable stream."""

    def __init__(self, prefix: bytes, stream: BinaryIO):
        self._prefix = prefix
        self._stream = stream

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._prefix:
            size = min(len(buffer), len(self._prefix))
            buffer[:size] = self._prefix[:size]
            self._prefix = self._prefix[size:]
            return size
        data = self._stream.read(len(buffer))
        if not data:
            return 0
        buffer[: len(data)] = data
        return len(data)


def peek_magic(stream: BinaryIO) -> tuple[bytes, BinaryIO]:
    """Read the first two bytes of a stream without losing them.

    Returns:
        (magic bytes, stream positioned so that reading starts from the beginning).
    """
    if stream.seekable():
        start = stream.tell()
        magic = stream.read(2)
        stream.seek(start)
        return magic, stream

    magic = stream.read(2)
    return magic, io.BufferedReader(_ReplayStream(magic, stream))


def is_gzip(magic: bytes) -> bool:
    """Check whether leading bytes match the gzip magic number."""
    return len(magic) >= 2 and magic[:2] == GZIP_MAGIC


def open_feed_text(stream: BinaryIO) -> io.TextIOWrapper:
    """Wrap a feed byte stream as text, decompressing if it is gzip.

    Args:
        stream: Binary stream, optionally gzip-compressed.

    Returns:
        UTF-8 text stream over the (decompressed) feed.
    """
    magic, stream = peek_magic(stream)
    if is_gzip(magic):
        raw: BinaryIO = gzip.GzipFile(fileobj=stream, mode="rb")
    else:
        raw = stream
    # utf-8-sig drops a leading BOM if present
    return io.TextIOWrapper(raw, encoding="utf-8-sig")


def iter_stream_lines(stream: BinaryIO) -> Iterator[str]:
    """Yield lines (without line terminators) from a feed byte stream.

    The stream is consumed lazily, so arbitrarily large feeds are never held
    in memory. I/O and decompression errors propagate to the caller.
    """
    text = open_feed_text(stream)
    try:
        for line in text:
            yield line.rstrip("\r\n")
    finally:
        # leave the caller's stream open
        text.detach()


def iter_content_lines(content: str) -> Iterator[str]:
    """Yield lines from an already-decoded feed blob."""
    yield from content.split("\n")
