from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..core.arch import Architecture
from .layouts import MINIDUMP_SIGNATURE

VER_NT_WORKSTATION = 1
VER_PLATFORM_WIN32_NT = 2


@dataclass(frozen=True)
class Header:
    signature: int
    version: int
    implementation_version: int
    stream_count: int
    stream_directory_rva: int
    checksum: int
    time_date_stamp: int
    flags: int

    @property
    def is_valid(self) -> bool:
        return self.signature == MINIDUMP_SIGNATURE and self.stream_count > 0


@dataclass(frozen=True)
class Directory:
    stream_type: int
    data_size: int
    rva: int


@dataclass(frozen=True)
class LocationDescriptor:
    """Size and absolute file offset of an opaque blob."""

    data_size: int
    rva: int


@dataclass(frozen=True)
class Thread:
    thread_id: int
    suspend_count: int
    priority_class: int
    priority: int
    teb: int
    stack_start: int
    stack: LocationDescriptor
    context: LocationDescriptor


@dataclass(frozen=True)
class Module:
    base_address: int
    size: int
    checksum: int
    time_date_stamp: int
    name_rva: int
    cv_record: LocationDescriptor
    misc_record: LocationDescriptor
    name: str = ""
    version_info: bytes = field(default=b"", repr=False)

    @property
    def end_address(self) -> int:
        return self.base_address + self.size

    def contains(self, address: int) -> bool:
        return self.base_address <= address < self.end_address


@dataclass(frozen=True)
class SystemInfo:
    processor_architecture: int
    processor_level: int
    processor_revision: int
    number_of_processors: int
    product_type: int
    major_version: int
    minor_version: int
    build_number: int
    platform_id: int
    csd_version_rva: int
    suite_mask: int
    cpu_information: bytes = field(repr=False)

    @property
    def architecture(self) -> Architecture:
        return Architecture.from_tag(self.processor_architecture)

    @property
    def is_64bit(self) -> bool:
        return self.architecture.is_64bit

    @property
    def pointer_size(self) -> int:
        return self.architecture.pointer_size

    @property
    def processor_features(self) -> Tuple[int, int]:
        """The non-x86 view of the CPU block: two raw feature words."""
        return struct.unpack_from("<QQ", self.cpu_information)

    @property
    def vendor_id(self) -> str:
        return self.cpu_information[:12].decode("ascii", errors="replace").rstrip("\x00")

    @property
    def version_information(self) -> int:
        return struct.unpack_from("<I", self.cpu_information, 12)[0]

    @property
    def feature_information(self) -> int:
        return struct.unpack_from("<I", self.cpu_information, 16)[0]

    @property
    def amd_extended_cpu_features(self) -> int:
        return struct.unpack_from("<I", self.cpu_information, 20)[0]

    @property
    def operating_system(self) -> str:
        """Best-effort guess of the Windows release from the version numbers."""
        workstation = self.product_type == VER_NT_WORKSTATION
        version = (self.major_version, self.minor_version)
        if version in _OS_NAMES:
            client, server = _OS_NAMES[version]
            return client if workstation else server
        return "Unknown"


_OS_NAMES = {
    (10, 0): ("Windows 10", "Windows Server 2016"),
    (6, 3): ("Windows 8.1", "Windows Server 2012 R2"),
    (6, 2): ("Windows 8", "Windows Server 2012"),
    (6, 1): ("Windows 7", "Windows Server 2008 R2"),
    (6, 0): ("Windows Vista", "Windows Server 2008"),
    (5, 1): ("Windows XP", "Windows XP"),
    (5, 0): ("Windows 2000", "Windows 2000"),
}


@dataclass(frozen=True)
class ExceptionInfo:
    thread_id: int
    exception_code: int
    exception_flags: int
    exception_record: int
    exception_address: int
    parameter_count: int
    parameters: Tuple[int, ...]
    context: LocationDescriptor


@dataclass(frozen=True)
class MiscInfo:
    size_of_info: int
    flags1: int
    process_id: int
    process_create_time: int
    process_user_time: int
    process_kernel_time: int
    processor_max_mhz: Optional[int] = None
    processor_current_mhz: Optional[int] = None
    processor_mhz_limit: Optional[int] = None
    processor_max_idle_state: Optional[int] = None
    processor_current_idle_state: Optional[int] = None


@dataclass(frozen=True)
class HandleDescriptor:
    handle: int
    type_name_rva: int
    object_name_rva: int
    attributes: int
    granted_access: int
    handle_count: int
    pointer_count: int
    type_name: str = ""
    object_name: str = ""
    object_info_rva: int = 0
