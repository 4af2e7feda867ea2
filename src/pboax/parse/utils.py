from io import SEEK_END, SEEK_SET
from struct import Struct
from typing import Any, BinaryIO, Iterator, Tuple

# PBO strings are raw bytes. This keeps decoding lossless, so two names
# compare equal exactly when their bytes do.
ENCODING = "utf-8"
ERRORS = "surrogateescape"

ZTERM_CHUNK = 64
# longest string scanned for a terminator, including it
ZTERM_LIMIT = 64 * 1024


def zterm_decode(raw: bytes) -> str:
    return raw.decode(ENCODING, ERRORS)


def stream_length(f: BinaryIO) -> int:
    """Return the total length of a seekable stream, keeping its position."""
    position = f.tell()
    length = f.seek(0, SEEK_END)
    f.seek(position, SEEK_SET)
    return length


class StreamReader:
    """Track offsets while reading from a seekable binary stream.

    Only the bytes of the current read are held in memory. ``offset`` is the
    current position, ``prev`` the position the last read started at, and
    ``start`` the position the stream was at when reading began.
    """

    def __init__(self, f: BinaryIO):
        self.f = f
        self.length = stream_length(f)
        self.start = f.tell()
        self.offset = self.start
        self.prev = self.offset

    def __len__(self) -> int:
        return self.length

    def seek(self, offset: int) -> None:
        self.prev = self.offset
        self.f.seek(offset, SEEK_SET)
        self.offset = offset

    def read(self, struct: Struct) -> Tuple[Any, ...]:
        """Read and unpack a struct.

        :raises struct.error: If the stream ends before the struct is read.
        """
        data = self.read_bytes(struct.size)
        return struct.unpack(data)

    def read_bytes(self, length: int) -> bytes:
        """Read up to ``length`` bytes. Fewer are returned at the end of the stream."""
        self.prev = self.offset
        value = self.f.read(length)
        self.offset += len(value)
        return value

    def read_zterm(self) -> bytes:
        """Read bytes up to and including a zero terminator, which is dropped.

        :raises ValueError: If the stream ends, or ``ZTERM_LIMIT`` bytes are
            scanned, before a null character.
        """
        start = self.offset
        parts = []
        scanned = 0
        while scanned < ZTERM_LIMIT:
            chunk = self.f.read(min(ZTERM_CHUNK, ZTERM_LIMIT - scanned))
            if not chunk:
                break
            null_index = chunk.find(b"\0")
            if null_index >= 0:
                parts.append(chunk[:null_index])
                raw = b"".join(parts)
                # the chunk may have read past the terminator
                self.seek(start + len(raw) + 1)
                self.prev = start
                return raw
            parts.append(chunk)
            scanned += len(chunk)

        self.seek(start + scanned)
        self.prev = start
        raise ValueError(f"Null terminator not found in {scanned} bytes")

    def iter_chunks(self, start: int, length: int, size: int) -> Iterator[bytes]:
        self.seek(start)
        while length > 0:
            chunk = self.read_bytes(min(size, length))
            if not chunk:  # pragma: no cover
                return
            length -= len(chunk)
            yield chunk
