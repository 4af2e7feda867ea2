"""Decode PBO header records and zero-terminated strings.

A header record is a zero-terminated filename followed by five little-endian
``uint32`` values: the packing method ("mime"), the original (unpacked)
size, a reserved value, the timestamp, and the size of the data in the blob.
The same shape is used for the version marker at the start of the archive,
and for the directory terminator, which has an empty filename.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from struct import Struct
from struct import error as StructError

from ..errors import MalformedHeader, TruncatedHeader, UnterminatedString, assert_in
from .utils import StreamReader, zterm_decode

HEADER_FIELDS = Struct("<5I")
assert HEADER_FIELDS.size == 20, HEADER_FIELDS.size

LOG = logging.getLogger(__name__)


class Mime(IntEnum):
    Blank = 0x00000000
    # compressed, returned as-is
    Cprs = 0x43707273
    Enco = 0x456E6372
    # b"sreV" on disk
    Vers = 0x56657273


MIMES = tuple(Mime)


@dataclass(frozen=True)
class BinaryHeader:
    filename: str
    mime: Mime
    original_size: int
    reserved: int
    timestamp: int
    size: int


def read_zstring(reader: StreamReader) -> str:
    try:
        raw = reader.read_zterm()
    except ValueError as e:
        raise UnterminatedString(
            f"string: no terminator before end {reader.offset} (at {reader.prev})"
        ) from e
    return zterm_decode(raw)


def read_header(reader: StreamReader) -> BinaryHeader:
    start = reader.offset
    try:
        filename = read_zstring(reader)
    except UnterminatedString as e:
        raise TruncatedHeader(f"header filename: {e}") from e

    try:
        mime, original_size, reserved, timestamp, size = reader.read(HEADER_FIELDS)
    except StructError as e:
        raise TruncatedHeader(
            f"header '{filename}': {reader.offset - reader.prev} bytes remain, "
            f"expected {HEADER_FIELDS.size} (at {reader.prev})"
        ) from e

    assert_in("header mime", MIMES, mime, reader.prev, MalformedHeader)
    LOG.debug("Header '%s' (%08X, size %d) at %d", filename, mime, size, start)
    return BinaryHeader(
        filename=filename,
        mime=Mime(mime),
        original_size=original_size,
        reserved=reserved,
        timestamp=timestamp,
        size=size,
    )
