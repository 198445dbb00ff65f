from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import AddressNotMapped, CrossesSegmentBoundary, MemoryAccessError
from .permissions import MemoryPermissions


MEM_STATE_NAMES = {
    0x1000: "MEM_COMMIT",
    0x2000: "MEM_RESERVE",
    0x10000: "MEM_FREE",
}

MEM_TYPE_NAMES = {
    0x1000000: "MEM_IMAGE",
    0x40000: "MEM_MAPPED",
    0x20000: "MEM_PRIVATE",
    0: "N/A",
}

PAGE_PROTECT_NAMES = {
    0x01: "PAGE_NOACCESS",
    0x02: "PAGE_READONLY",
    0x04: "PAGE_READWRITE",
    0x08: "PAGE_WRITECOPY",
    0x10: "PAGE_EXECUTE",
    0x20: "PAGE_EXECUTE_READ",
    0x40: "PAGE_EXECUTE_READWRITE",
    0x80: "PAGE_EXECUTE_WRITECOPY",
}


@dataclass(frozen=True)
class MemorySegment:
    """A contiguous range of captured process memory backed by file bytes."""

    start: int
    size: int
    file_offset: int

    @property
    def end(self) -> int:
        return self.start + self.size

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end

    def file_offset_of(self, address: int) -> int:
        return self.file_offset + (address - self.start)


@dataclass(frozen=True)
class MemoryRegion:
    """Descriptive metadata for a range of the process address space."""

    base_address: int
    allocation_base: int
    allocation_protect: int
    region_size: int
    state: int
    protect: int
    type: int

    @property
    def end(self) -> int:
        return self.base_address + self.region_size

    @property
    def permissions(self) -> MemoryPermissions:
        return MemoryPermissions.from_page_protect(self.protect)

    @property
    def state_name(self) -> str:
        return MEM_STATE_NAMES.get(self.state, "UNKNOWN")

    @property
    def protect_name(self) -> str:
        return PAGE_PROTECT_NAMES.get(self.protect, "PAGE_UNKNOWN")

    @property
    def type_name(self) -> str:
        return MEM_TYPE_NAMES.get(self.type, "UNKNOWN")

    def contains(self, address: int) -> bool:
        return self.base_address <= address < self.end


class AddressSpace:
    """Index over captured segments and region metadata.

    Lookups are linear and keep decode order, so the first segment that
    contains an address wins if a malformed dump has overlaps.
    """

    def __init__(
        self,
        segments: Iterable[MemorySegment],
        regions: Iterable[MemoryRegion] = (),
    ):
        self._segments: List[MemorySegment] = list(segments)
        self._regions: List[MemoryRegion] = list(regions)

    def __len__(self) -> int:
        return len(self._segments)

    def find_segment(self, address: int) -> Optional[MemorySegment]:
        for segment in self._segments:
            if segment.contains(address):
                return segment
        return None

    def find_region(self, address: int) -> Optional[MemoryRegion]:
        for region in self._regions:
            if region.contains(address):
                return region
        return None

    def translate(self, address: int, size: int) -> int:
        """Return the file offset backing ``size`` bytes at ``address``."""
        if size <= 0:
            raise MemoryAccessError(f"invalid read size: {size}")
        segment = self.find_segment(address)
        if segment is None:
            raise AddressNotMapped(address)
        if address + size > segment.end:
            raise CrossesSegmentBoundary(address, size, segment.end)
        return segment.file_offset_of(address)

    def is_mapped(self, address: int, size: int = 1) -> bool:
        try:
            self.translate(address, size)
        except MemoryAccessError:
            return False
        return True
