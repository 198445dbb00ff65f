"""
Text report in the column layout of the python minidump tool.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .formats.records import VER_PLATFORM_WIN32_NT
from .snapshot.base import Snapshot

BANNER = [
    "",
    "# minidump 0.0.21 ",
    "# Author: redthing1 (based on python minidump)",
    "",
]

PRODUCT_TYPES = {
    1: "VER_NT_WORKSTATION",
    2: "VER_NT_DOMAIN_CONTROLLER",
}

def format_hex(value: int) -> str:
    return f"0x{value:x}"


def format_hex_padded(value: int, width: int) -> str:
    return f"0x{value:0{width}x}"


def table_header(headers: Sequence[str], widths: Sequence[int]) -> str:
    return " | ".join(h.ljust(w) for h, w in zip(headers, widths))


def table_separator(widths: Sequence[int]) -> str:
    return "-" * (sum(widths) + 3 * (len(widths) - 1))


def table_row(values: Sequence[str], widths: Sequence[int]) -> str:
    return " | ".join(v.ljust(w) for v, w in zip(values, widths))


def _table(
    title: str, headers: Sequence[str], widths: Sequence[int], rows
) -> List[str]:
    lines = [title, table_header(headers, widths), table_separator(widths)]
    lines.extend(table_row(row, widths) for row in rows)
    lines.append("")
    return lines


def thread_section(snapshot: Snapshot) -> List[str]:
    rows = [
        [
            format_hex(t.thread_id),
            str(t.suspend_count),
            str(t.priority_class),
            str(t.priority),
            format_hex(t.teb),
        ]
        for t in snapshot.threads
    ]
    return _table(
        "ThreadList",
        ["ThreadId", "SuspendCount", "PriorityClass", "Priority", "Teb"],
        [8, 12, 13, 8, 8],
        rows,
    )


def module_section(snapshot: Snapshot) -> List[str]:
    rows = [
        [
            m.name,
            format_hex_padded(m.base_address, 8),
            format_hex(m.size),
            format_hex_padded(m.end_address, 8),
            format_hex(m.time_date_stamp),
        ]
        for m in snapshot.modules
    ]
    return _table(
        "== ModuleList ==",
        ["Module name", "BaseAddress", "Size", "Endaddress", "Timestamp"],
        [59, 14, 8, 14, 10],
        rows,
    )


def segment_section(snapshot: Snapshot) -> List[str]:
    rows = [
        [format_hex(s.start), format_hex(s.file_offset), format_hex(s.size)]
        for s in snapshot.segments
    ]
    return _table(
        "== MinidumpMemory64List ==", ["VA Start", "RVA", "Size"], [14, 8, 8], rows
    )


def region_section(snapshot: Snapshot) -> List[str]:
    rows = [
        [
            format_hex(r.base_address),
            format_hex(r.allocation_base) if r.allocation_base else "0",
            str(r.allocation_protect),
            format_hex(r.region_size),
            r.state_name,
            r.protect_name,
            r.type_name,
        ]
        for r in snapshot.regions
    ]
    return _table(
        "== MinidumpMemoryInfoList ==",
        [
            "BaseAddress",
            "AllocationBase",
            "AllocationProtect",
            "RegionSize",
            "State",
            "Protect",
            "Type",
        ],
        [14, 14, 17, 10, 11, 25, 11],
        rows,
    )


def system_info_section(snapshot: Snapshot) -> List[str]:
    info = snapshot.system_info
    if info is None:
        return []

    features0, features1 = info.processor_features
    low0, high0 = features0 & 0xFFFFFFFF, (features0 >> 32) & 0xFFFFFFFF
    low1, high1 = features1 & 0xFFFFFFFF, (features1 >> 32) & 0xFFFFFFFF
    platform = "VER_PLATFORM_WIN32_NT" if info.platform_id == VER_PLATFORM_WIN32_NT else "UNKNOWN"
    return [
        "== System Info ==",
        f"ProcessorArchitecture PROCESSOR_ARCHITECTURE.{info.architecture.display_name}",
        f"OperatingSystem -guess- {info.operating_system}",
        f"ProcessorLevel {info.processor_level}",
        f"ProcessorRevision {format_hex(info.processor_revision)}",
        f"NumberOfProcessors {info.number_of_processors}",
        f"ProductType PRODUCT_TYPE.{PRODUCT_TYPES.get(info.product_type, 'VER_NT_SERVER')}",
        f"MajorVersion {info.major_version}",
        f"MinorVersion {info.minor_version}",
        f"BuildNumber {info.build_number}",
        f"PlatformId PLATFORM_ID.{platform}",
        "CSDVersion: ",
        f"SuiteMask {info.suite_mask}",
        f"VendorId {format_hex(low0)} {format_hex(high0)} {format_hex(low1)}",
        f"VersionInformation {high1}",
        f"FeatureInformation {low0}",
        f"AMDExtendedCpuFeatures {high0}",
        "ProcessorFeatures",
        "",
    ]


def exception_section(snapshot: Snapshot) -> List[str]:
    exc = snapshot.exception
    if exc is None:
        return []
    row = [
        format_hex(exc.thread_id),
        # legacy output prints placeholders for the code and parameters
        "ExceptionCode.EXCEPTION_UNKNOWN",
        format_hex(exc.exception_flags),
        format_hex(exc.exception_record),
        format_hex(exc.exception_address),
        "[]",
    ]
    return _table(
        "== ExceptionList ==",
        [
            "ThreadId",
            "ExceptionCode",
            "ExceptionFlags",
            "ExceptionRecord",
            "ExceptionAddress",
            "ExceptionInformation",
        ],
        [10, 31, 14, 15, 16, 19],
        [row],
    )


def handle_section(snapshot: Snapshot) -> List[str]:
    if not snapshot.handles:
        return []
    lines = ["== MinidumpHandleDataStream ==", "== MinidumpHandleDescriptor == "]
    for h in snapshot.handles:
        lines.append(
            f"Handle 0x{h.handle:08x} TypeName {h.type_name} ObjectName {h.object_name}"
            f" Attributes {h.attributes} GrantedAccess {h.granted_access}"
            f" HandleCount {h.handle_count} PointerCount {h.pointer_count}"
        )
    lines.append("")
    return lines


def _or_zero(value: Optional[int]) -> int:
    return 0 if value is None else value


def misc_info_section(snapshot: Snapshot) -> List[str]:
    misc = snapshot.misc_info
    if misc is None:
        return []
    return [
        "== MinidumpMiscInfo ==",
        f"SizeOfInfo {misc.size_of_info}",
        f"Flags1 {misc.flags1}",
        f"ProcessId {misc.process_id}",
        f"ProcessCreateTime {misc.process_create_time}",
        f"ProcessUserTime {misc.process_user_time}",
        f"ProcessKernelTime {misc.process_kernel_time}",
        f"ProcessorMaxMhz {_or_zero(misc.processor_max_mhz)}",
        f"ProcessorCurrentMhz {_or_zero(misc.processor_current_mhz)}",
        f"ProcessorMhzLimit {_or_zero(misc.processor_mhz_limit)}",
        f"ProcessorMaxIdleState {_or_zero(misc.processor_max_idle_state)}",
        f"ProcessorCurrentIdleState {_or_zero(misc.processor_current_idle_state)}",
        "",
    ]


def header_section(snapshot: Snapshot) -> List[str]:
    header = snapshot.header
    # the reference tool reads the trailing fields one slot off
    return [
        "",
        "== MinidumpHeader ==",
        "Signature: PMDM",
        f"Version: {header.version}",
        f"ImplementationVersion: {header.implementation_version}",
        f"NumberOfStreams: {header.stream_count}",
        f"StreamDirectoryRva: {header.stream_directory_rva}",
        f"CheckSum: {header.checksum}",
        f"Reserved: {header.time_date_stamp}",
        f"TimeDateStamp: {header.flags & 0xFFFFFFFF}",
        f"Flags: {header.flags >> 32}",
        "",
    ]


SECTIONS = (
    thread_section,
    module_section,
    segment_section,
    region_section,
    system_info_section,
    exception_section,
    handle_section,
    misc_info_section,
    header_section,
)


def render_report(snapshot: Snapshot) -> str:
    lines = list(BANNER)
    for section in SECTIONS:
        lines.extend(section(snapshot))
    return "\n".join(lines) + "\n"


def render_summary(snapshot: Snapshot) -> str:
    header = snapshot.header
    lines = [
        "=== DEBUG INFO ===",
        f"Header signature: 0x{header.signature:x}",
        f"Number of streams: {header.stream_count}",
        f"Stream directory RVA: 0x{header.stream_directory_rva:x}",
        f"Threads parsed: {len(snapshot.threads)}",
        f"Modules parsed: {len(snapshot.modules)}",
        f"Memory segments: {len(snapshot.segments)}",
        f"Memory regions: {len(snapshot.regions)}",
    ]
    for failure in snapshot.failed_streams:
        lines.append(f"Failed stream {failure.index}: {failure.name} ({failure.error})")

    lines.extend(["", "=== THREAD DETAILS ==="])
    for index, t in enumerate(snapshot.threads):
        lines.append(
            f"Thread {index}: ID=0x{t.thread_id:x} SuspendCount={t.suspend_count}"
            f" PriorityClass={t.priority_class} Priority={t.priority} TEB=0x{t.teb:x}"
        )

    lines.extend(["", "=== MODULE DETAILS ==="])
    for index, m in enumerate(snapshot.modules[:5]):
        lines.append(
            f'Module {index}: Base=0x{m.base_address:x} Size=0x{m.size:x} Name="{m.name}"'
        )
    return "\n".join(lines) + "\n"
