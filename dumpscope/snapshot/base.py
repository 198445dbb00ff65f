from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..core.arch import Architecture
from ..core.memory import AddressSpace, MemoryRegion, MemorySegment
from ..formats.minidump import MinidumpContents, StreamFailure
from ..formats.records import (
    Directory,
    ExceptionInfo,
    HandleDescriptor,
    Header,
    MiscInfo,
    Module,
    SystemInfo,
    Thread,
)

DumpSource = Union[str, bytes]


@dataclass(frozen=True)
class Snapshot:
    """Decoded contents of one minidump plus where its bytes live."""

    contents: MinidumpContents
    source: DumpSource

    def __post_init__(self) -> None:
        space = AddressSpace(self.contents.segments, self.contents.regions)
        object.__setattr__(self, "_address_space", space)

    def __repr__(self) -> str:
        return (
            f"Snapshot(arch={self.arch.display_name}, threads={len(self.threads)}, "
            f"modules={len(self.modules)}, segments={len(self.segments)})"
        )

    @property
    def path(self) -> Optional[str]:
        return self.source if isinstance(self.source, str) else None

    @property
    def header(self) -> Header:
        return self.contents.header

    @property
    def directories(self) -> Tuple[Directory, ...]:
        return self.contents.directories

    @property
    def threads(self) -> Tuple[Thread, ...]:
        return self.contents.threads

    @property
    def modules(self) -> Tuple[Module, ...]:
        return self.contents.modules

    @property
    def segments(self) -> Tuple[MemorySegment, ...]:
        return self.contents.segments

    @property
    def regions(self) -> Tuple[MemoryRegion, ...]:
        return self.contents.regions

    @property
    def handles(self) -> Tuple[HandleDescriptor, ...]:
        return self.contents.handles

    @property
    def system_info(self) -> Optional[SystemInfo]:
        return self.contents.system_info

    @property
    def exception(self) -> Optional[ExceptionInfo]:
        return self.contents.exception

    @property
    def misc_info(self) -> Optional[MiscInfo]:
        return self.contents.misc_info

    @property
    def failed_streams(self) -> Tuple[StreamFailure, ...]:
        return self.contents.failed_streams

    @property
    def address_space(self) -> AddressSpace:
        return self._address_space

    @property
    def arch(self) -> Architecture:
        if self.system_info is None:
            return Architecture.UNKNOWN
        return self.system_info.architecture

    @property
    def is_64bit(self) -> bool:
        return self.arch.is_64bit

    @property
    def pointer_size(self) -> int:
        # no system info means 32-bit pointers, never a guess at 64
        return self.arch.pointer_size

    def module_by_address(self, address: int) -> Optional[Module]:
        for module in self.modules:
            if module.contains(address):
                return module
        return None

    def module_by_name(self, name: str) -> Optional[Module]:
        for module in self.modules:
            if name in module.name:
                return module
        return None

    def segment_by_address(self, address: int) -> Optional[MemorySegment]:
        return self.address_space.find_segment(address)

    def region_by_address(self, address: int) -> Optional[MemoryRegion]:
        return self.address_space.find_region(address)

    def thread_by_id(self, thread_id: int) -> Optional[Thread]:
        for thread in self.threads:
            if thread.thread_id == thread_id:
                return thread
        return None

    def reader(self):
        from .reader import MemoryReader

        return MemoryReader(self)
