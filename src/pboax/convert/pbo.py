"""Convert PBO archives to ZIP files, or list their contents.

The members are written as they are stored in the archive, so compressed
members stay compressed. The version header, properties, and the header of
each entry are written to a manifest.
"""
from __future__ import annotations

import logging
from argparse import Namespace, _SubParsersAction
from pathlib import Path, PurePosixPath
from typing import Dict, List, Set
from zipfile import ZIP_DEFLATED, ZipFile

from pydantic import BaseModel

from ..parse.header import BinaryHeader
from ..parse.pbo import PboHandle, open_pbo
from .utils import input_pbo, output_path, output_resolve

MANIFEST = "manifest.json"

LOG = logging.getLogger(__name__)


class HeaderInfo(BaseModel):
    name: str
    mime: str
    original_size: int = 0
    reserved: int = 0
    timestamp: int = 0
    size: int = 0

    @classmethod
    def from_header(cls, header: BinaryHeader) -> HeaderInfo:
        return cls(
            name=header.filename,
            mime=header.mime.name,
            original_size=header.original_size,
            reserved=header.reserved,
            timestamp=header.timestamp,
            size=header.size,
        )


class EntryInfo(HeaderInfo):
    rename: str
    offset: int


class PboManifest(BaseModel):
    version: HeaderInfo
    properties: Dict[str, str]
    entries: List[EntryInfo]
    checksum: str

    @classmethod
    def from_handle(cls, handle: PboHandle, entries: List[EntryInfo]) -> PboManifest:
        return cls(
            version=HeaderInfo.from_header(handle.version_header),
            properties=dict(handle.properties),
            entries=entries,
            checksum=handle.checksum.hex(),
        )


class Renamer:
    """Rename duplicates, and use forward slashes as the path separator"""

    def __init__(self) -> None:
        self._names: Set[str] = set()

    def __call__(self, name: str) -> str:
        name = name.replace("\\", "/")
        basename = PurePosixPath(name)
        i = 1
        while name in self._names:
            name = str(basename.with_name(f"{basename.stem}_{i}{basename.suffix}"))
            i += 1

        self._names.add(name)
        return name


def pbo_to_zip(input_pbo: Path, output_zip: Path) -> PboManifest:
    renamer = Renamer()
    entries = []

    with open_pbo(input_pbo) as handle:
        with ZipFile(output_zip, "w", compression=ZIP_DEFLATED) as z:
            offset = 0
            for header, data in handle.iter_entries():
                rename = renamer(header.filename)
                LOG.debug("Writing '%s' as '%s'", header.filename, rename)
                z.writestr(rename, data)
                info = HeaderInfo.from_header(header).model_dump()
                entries.append(EntryInfo(rename=rename, offset=offset, **info))
                offset += header.size

            manifest = PboManifest.from_handle(handle, entries)
            z.writestr(MANIFEST, manifest.model_dump_json(indent=2))

    LOG.info("Wrote %d entries to '%s'", len(entries), output_zip)
    return manifest


def pbo_list(input_pbo: Path) -> List[str]:
    lines = []
    with open_pbo(input_pbo) as handle:
        for key, value in handle.properties.items():
            lines.append(f"{key}={value}")
        if handle.properties:
            lines.append("")
        for header in handle.files:
            lines.append(f"{header.size:>10} {header.mime.name:<5} {header.filename}")
        lines.append(f"{handle.blob_size:>10} total, {len(handle.files)} entries")
    return lines


def pbo_extract_command(args: Namespace) -> None:
    output_zip = output_resolve(args.input_pbo, args.output_zip, ".zip")
    pbo_to_zip(args.input_pbo, output_zip)


def pbo_extract_subparser(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("extract", description=__doc__)
    parser.set_defaults(command=pbo_extract_command)
    parser.add_argument("input_pbo", type=input_pbo)
    parser.add_argument("output_zip", type=output_path, default=None, nargs="?")


def pbo_list_command(args: Namespace) -> None:
    for line in pbo_list(args.input_pbo):
        print(line)


def pbo_list_subparser(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("list", description=__doc__)
    parser.set_defaults(command=pbo_list_command)
    parser.add_argument("input_pbo", type=input_pbo)
