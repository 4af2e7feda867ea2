"""Read PBO archives and extract their members.

The archive is parsed once when it is opened: the version header, the
property table, and the file directory. The data blob is not read. Instead,
each member is located on demand, since the directory only stores sizes. A
member's offset into the blob is the sum of the sizes of all entries before
it.

After the blob, there is a single separator byte and a checksum. Nothing may
follow the checksum.

A handle owns its stream, and reading a member moves the stream position. So
a handle must not be used by more than one caller at a time. Open another
handle on the same path instead.
"""
from __future__ import annotations

import logging
from contextlib import ExitStack
from hashlib import sha1
from pathlib import Path
from types import MappingProxyType, TracebackType
from typing import BinaryIO, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Type

from ..errors import (
    InvalidVersionMarker,
    MemberNotFound,
    TrailingData,
    TruncatedArchive,
    TruncatedHeader,
    TruncatedMember,
    UnterminatedDirectory,
    UnterminatedPropertyTable,
    UnterminatedString,
    assert_eq,
    assert_le,
)
from .header import BinaryHeader, Mime, read_header, read_zstring
from .utils import StreamReader

CHECKSUM_SIZE = 20
SEPARATOR_SIZE = 1
CHECKSUM_CHUNK = 64 * 1024

LOG = logging.getLogger(__name__)


class PboHandle:
    def __init__(  # pylint: disable=too-many-arguments
        self,
        reader: StreamReader,
        version_header: BinaryHeader,
        properties: Dict[str, str],
        files: Sequence[BinaryHeader],
        blob_start: int,
        checksum: bytes,
    ):
        self._reader = reader
        self.version_header = version_header
        self.properties: Mapping[str, str] = MappingProxyType(properties)
        self.files: Tuple[BinaryHeader, ...] = tuple(files)
        self.blob_start = blob_start
        self.checksum = checksum
        self.length = len(reader)

        # duplicate names resolve to the first entry
        self._index: Dict[str, int] = {}
        for index, header in enumerate(self.files):
            self._index.setdefault(header.filename, index)

    def __enter__(self) -> PboHandle:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._reader.f.closed

    def close(self) -> None:
        if not self.closed:
            LOG.debug("Closing PBO handle")
            self._reader.f.close()

    @property
    def blob_size(self) -> int:
        return sum(header.size for header in self.files)

    def filenames(self) -> Tuple[str, ...]:
        return tuple(header.filename for header in self.files)

    def _find(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise MemberNotFound(f"member {name!r} not found in PBO") from None

    def _offset(self, index: int) -> int:
        return sum(header.size for header in self.files[:index])

    def offset_of(self, name: str) -> int:
        """Return the offset of a member relative to the start of the blob.

        :raises MemberNotFound: If no entry has this name.
        """
        return self._offset(self._find(name))

    def _read_member(self, index: int) -> bytes:
        header = self.files[index]
        if header.size == 0:
            return b""

        start = self.blob_start + self._offset(index)
        LOG.debug("Reading '%s' (%d bytes) at %d", header.filename, header.size, start)
        self._reader.seek(start)
        data = self._reader.read_bytes(header.size)
        assert_eq(
            f"member '{header.filename}' size",
            header.size,
            len(data),
            start,
            TruncatedMember,
        )
        return data

    def extract(self, name: str) -> bytes:
        """Return the raw data of the first member with this name.

        Compressed members are returned as they are stored.

        :raises MemberNotFound: If no entry has this name.
        :raises TruncatedMember: If the archive ends before the member does.
        """
        return self._read_member(self._find(name))

    def iter_entries(self) -> Iterator[Tuple[BinaryHeader, bytes]]:
        """Yield every entry and its data, in directory order.

        Unlike :meth:`extract`, entries with duplicate names each yield their
        own data.
        """
        for index, header in enumerate(self.files):
            yield header, self._read_member(index)

    def compute_checksum(self) -> bytes:
        """Return the SHA-1 digest of all data before the separator byte.

        The archive starts where the stream was positioned when it was read.
        """
        digest = sha1()
        start = self._reader.start
        length = self.blob_start + self.blob_size - start
        for chunk in self._reader.iter_chunks(start, length, CHECKSUM_CHUNK):
            digest.update(chunk)
        return digest.digest()

    def verify_checksum(self) -> bool:
        return self.compute_checksum() == self.checksum


def _read_properties(reader: StreamReader) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    while True:
        start = reader.offset
        try:
            key = read_zstring(reader)
            if not key:
                break
            value = read_zstring(reader)
        except UnterminatedString as e:
            raise UnterminatedPropertyTable(
                f"property table: no empty key before end {len(reader)} (at {start})"
            ) from e
        LOG.debug("Property '%s' = '%s' at %d", key, value, start)
        properties[key] = value
    return properties


def _read_directory(reader: StreamReader) -> Sequence[BinaryHeader]:
    files = []
    while True:
        start = reader.offset
        LOG.debug("Reading entry %d at %d", len(files), start)
        try:
            header = read_header(reader)
        except TruncatedHeader as e:
            raise UnterminatedDirectory(
                f"directory: no empty filename before end {len(reader)} (at {start})"
            ) from e
        if not header.filename:
            break
        files.append(header)
    return files


def read_pbo(f: BinaryIO) -> PboHandle:
    """Parse and validate the structure of a PBO archive.

    The stream must be readable and seekable. The returned handle takes
    ownership of it.
    """
    reader = StreamReader(f)
    LOG.debug("Reading PBO data...")

    version_header = read_header(reader)
    assert_eq(
        "version mime",
        Mime.Vers,
        version_header.mime,
        reader.prev,
        InvalidVersionMarker,
    )

    properties = _read_properties(reader)
    LOG.debug("Read %d properties", len(properties))

    files = _read_directory(reader)
    LOG.debug("Read %d entries", len(files))

    blob_start = reader.offset
    blob_size = sum(header.size for header in files)
    LOG.debug("Blob from %d to %d", blob_start, blob_start + blob_size)

    checksum_start = blob_start + blob_size + SEPARATOR_SIZE
    assert_le(
        "checksum start", len(reader), checksum_start, blob_start, TruncatedArchive
    )
    reader.seek(checksum_start)

    checksum = reader.read_bytes(CHECKSUM_SIZE)
    assert_eq(
        "checksum size", CHECKSUM_SIZE, len(checksum), reader.prev, TruncatedArchive
    )

    # make sure all the data is processed
    assert_eq("archive end", len(reader), reader.offset, reader.offset, TrailingData)
    LOG.debug("Read PBO data")

    return PboHandle(reader, version_header, properties, files, blob_start, checksum)


def open_pbo(path: Path) -> PboHandle:
    """Open and parse a PBO archive. The file is closed if parsing fails."""
    with ExitStack() as stack:
        f = stack.enter_context(path.open("rb"))
        handle = read_pbo(f)
        stack.pop_all()
    return handle
