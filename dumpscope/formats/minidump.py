from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Tuple

from redlog import field, get_logger

from ..core.config import ParserConfig
from ..core.errors import MalformedDirectory, MalformedHeader, MalformedStream
from ..core.memory import MemoryRegion, MemorySegment
from . import layouts
from .decoders import DECODERS, StreamCursor
from .layouts import StreamType, stream_type_name
from .records import (
    Directory,
    ExceptionInfo,
    HandleDescriptor,
    Header,
    MiscInfo,
    Module,
    SystemInfo,
    Thread,
)


@dataclass(frozen=True)
class StreamFailure:
    """A known stream that could not be decoded and was left out."""

    stream_type: int
    index: int
    error: MalformedStream

    @property
    def name(self) -> str:
        return stream_type_name(self.stream_type)


@dataclass(frozen=True)
class MinidumpContents:
    header: Header
    directories: Tuple[Directory, ...]
    threads: Tuple[Thread, ...] = ()
    modules: Tuple[Module, ...] = ()
    segments: Tuple[MemorySegment, ...] = ()
    regions: Tuple[MemoryRegion, ...] = ()
    handles: Tuple[HandleDescriptor, ...] = ()
    system_info: Optional[SystemInfo] = None
    exception: Optional[ExceptionInfo] = None
    misc_info: Optional[MiscInfo] = None
    failed_streams: Tuple[StreamFailure, ...] = ()


# where each decoder's output lands in MinidumpContents
_LIST_TARGETS = {
    StreamType.THREAD_LIST: "threads",
    StreamType.MODULE_LIST: "modules",
    StreamType.MEMORY_LIST: "segments",
    StreamType.MEMORY64_LIST: "segments",
    StreamType.MEMORY_INFO_LIST: "regions",
    StreamType.HANDLE_DATA: "handles",
}

_SINGLE_TARGETS = {
    StreamType.SYSTEM_INFO: "system_info",
    StreamType.EXCEPTION: "exception",
    StreamType.MISC_INFO: "misc_info",
}


class MinidumpParser:
    """Single-pass decoder from a binary file object to MinidumpContents."""

    def __init__(self, fp: BinaryIO, config: Optional[ParserConfig] = None):
        self.fp = fp
        self.config = config or ParserConfig()
        self.log = get_logger("minidump.parser")

    def parse(self) -> MinidumpContents:
        header = self.parse_header()
        directories = self.parse_directory(header)
        return self.parse_streams(header, directories)

    def parse_header(self) -> Header:
        self.fp.seek(0)
        data = self.fp.read(layouts.HEADER.size)
        if len(data) < layouts.HEADER.size:
            raise MalformedHeader(f"short header read ({len(data)} bytes)")

        header = Header(*layouts.HEADER.unpack(data))
        if not header.is_valid:
            raise MalformedHeader(
                f"invalid header (signature 0x{header.signature:08x},"
                f" {header.stream_count} streams)"
            )

        self.log.trc(
            "parsed header",
            field("version", header.version),
            field("streams", header.stream_count),
            field("directory", f"0x{header.stream_directory_rva:x}"),
        )
        return header

    def parse_directory(self, header: Header) -> List[Directory]:
        self.fp.seek(header.stream_directory_rva)
        directories: List[Directory] = []
        for index in range(header.stream_count):
            data = self.fp.read(layouts.DIRECTORY.size)
            if len(data) < layouts.DIRECTORY.size:
                raise MalformedDirectory(
                    f"short read of directory entry {index} of {header.stream_count}"
                )
            directories.append(Directory(*layouts.DIRECTORY.unpack(data)))
        return directories

    def parse_streams(
        self, header: Header, directories: List[Directory]
    ) -> MinidumpContents:
        lists = {name: [] for name in set(_LIST_TARGETS.values())}
        singles = {name: None for name in _SINGLE_TARGETS.values()}
        failures: List[StreamFailure] = []

        for index, directory in enumerate(directories):
            decoder = DECODERS.get(directory.stream_type)
            if decoder is None:
                self.log.trc(
                    "skipping stream",
                    field("type", directory.stream_type),
                    field("index", index),
                )
                continue

            kind = stream_type_name(directory.stream_type)
            cursor = StreamCursor(self.fp, kind, self.config)
            try:
                value = decoder(cursor, directory)
            except MalformedStream as exc:
                if self.config.strict:
                    raise
                self.log.wrn(
                    "stream failed to decode",
                    field("stream", kind),
                    field("index", index),
                    field("error", str(exc)),
                )
                failures.append(
                    StreamFailure(
                        stream_type=directory.stream_type, index=index, error=exc
                    )
                )
                continue

            stream_type = StreamType(directory.stream_type)
            if stream_type in _LIST_TARGETS:
                lists[_LIST_TARGETS[stream_type]].extend(value)
                self.log.dbg(
                    "decoded stream", field("stream", kind), field("entries", len(value))
                )
            else:
                singles[_SINGLE_TARGETS[stream_type]] = value
                self.log.dbg("decoded stream", field("stream", kind))

        return MinidumpContents(
            header=header,
            directories=tuple(directories),
            failed_streams=tuple(failures),
            **{name: tuple(values) for name, values in lists.items()},
            **singles,
        )


def parse_minidump(
    fp: BinaryIO, config: Optional[ParserConfig] = None
) -> MinidumpContents:
    return MinidumpParser(fp, config).parse()
