"""
Typed decoders for the minidump streams this package understands.

Every decoder takes a cursor over the dump and the directory entry that
points at its stream. Fixed-size reads that come up short raise
MalformedStream; list bodies that are cut short end at the last whole
element.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple

from redlog import field, get_logger

from ..core.config import ParserConfig
from ..core.errors import MalformedStream
from ..core.memory import MemoryRegion, MemorySegment
from . import layouts
from .layouts import StreamType
from .records import (
    Directory,
    ExceptionInfo,
    HandleDescriptor,
    LocationDescriptor,
    MiscInfo,
    Module,
    SystemInfo,
    Thread,
)

log = get_logger("minidump.decoder")


class StreamCursor:
    """Sequential reader over the dump file for a single stream."""

    def __init__(self, fp: BinaryIO, kind: str, config: ParserConfig):
        self.fp = fp
        self.kind = kind
        self.config = config

    def seek(self, offset: int) -> None:
        self.fp.seek(offset)

    def read_struct(self, layout: struct.Struct) -> Tuple:
        values = self.try_read_struct(layout)
        if values is None:
            raise MalformedStream(
                self.kind, f"short read of {layout.size} bytes at 0x{self.fp.tell():x}"
            )
        return values

    def try_read_struct(self, layout: struct.Struct) -> Optional[Tuple]:
        data = self.fp.read(layout.size)
        if len(data) < layout.size:
            return None
        return layout.unpack(data)

    def element_count(self, declared: int) -> int:
        limit = self.config.max_elements
        if declared > limit:
            log.wrn(
                "list count exceeds ceiling, truncating",
                field("stream", self.kind),
                field("declared", declared),
                field("ceiling", limit),
            )
            return limit
        return declared

    def read_name(self, rva: int) -> str:
        """Resolve a length-prefixed UTF-16 name stored at ``rva``.

        The cursor position is restored afterwards so the caller can keep
        reading the record that referenced the name.
        """
        if rva == 0:
            return ""
        position = self.fp.tell()
        try:
            self.fp.seek(rva)
            prefix = self.fp.read(layouts.STRING_LENGTH.size)
            if len(prefix) < layouts.STRING_LENGTH.size:
                return ""
            (length,) = layouts.STRING_LENGTH.unpack(prefix)
            if not 0 < length < self.config.max_name_length:
                return ""
            data = self.fp.read(length)
            if len(data) < length:
                return ""
            return data.decode("utf-16-le", errors="replace").rstrip("\x00")
        finally:
            self.fp.seek(position)


def _location(size: int, rva: int) -> LocationDescriptor:
    return LocationDescriptor(data_size=size, rva=rva)


def decode_thread_list(cursor: StreamCursor, directory: Directory) -> List[Thread]:
    cursor.seek(directory.rva)
    (declared,) = cursor.read_struct(layouts.LIST_COUNT)

    threads: List[Thread] = []
    for _ in range(cursor.element_count(declared)):
        values = cursor.try_read_struct(layouts.THREAD)
        if values is None:
            break
        (
            thread_id,
            suspend_count,
            priority_class,
            priority,
            teb,
            stack_start,
            stack_size,
            stack_rva,
            context_size,
            context_rva,
        ) = values
        threads.append(
            Thread(
                thread_id=thread_id,
                suspend_count=suspend_count,
                priority_class=priority_class,
                priority=priority,
                teb=teb,
                stack_start=stack_start,
                stack=_location(stack_size, stack_rva),
                context=_location(context_size, context_rva),
            )
        )
    return threads


def decode_module_list(cursor: StreamCursor, directory: Directory) -> List[Module]:
    cursor.seek(directory.rva)
    (declared,) = cursor.read_struct(layouts.LIST_COUNT)

    modules: List[Module] = []
    for _ in range(cursor.element_count(declared)):
        values = cursor.try_read_struct(layouts.MODULE)
        if values is None:
            break
        (
            base,
            size,
            checksum,
            timestamp,
            name_rva,
            version_info,
            cv_size,
            cv_rva,
            misc_size,
            misc_rva,
            _reserved0,
            _reserved1,
        ) = values
        modules.append(
            Module(
                base_address=base,
                size=size,
                checksum=checksum,
                time_date_stamp=timestamp,
                name_rva=name_rva,
                cv_record=_location(cv_size, cv_rva),
                misc_record=_location(misc_size, misc_rva),
                name=cursor.read_name(name_rva),
                version_info=version_info,
            )
        )
    return modules


def decode_memory_list(
    cursor: StreamCursor, directory: Directory
) -> List[MemorySegment]:
    cursor.seek(directory.rva)
    (declared,) = cursor.read_struct(layouts.LIST_COUNT)

    segments: List[MemorySegment] = []
    for _ in range(cursor.element_count(declared)):
        values = cursor.try_read_struct(layouts.MEMORY_DESCRIPTOR)
        if values is None:
            break
        start, size, rva = values
        if size > 0:
            segments.append(MemorySegment(start=start, size=size, file_offset=rva))
    return segments


def decode_memory64_list(
    cursor: StreamCursor, directory: Directory
) -> List[MemorySegment]:
    cursor.seek(directory.rva)
    declared, base_rva = cursor.read_struct(layouts.MEMORY64_LIST)

    # segment data is laid out back to back starting at base_rva
    segments: List[MemorySegment] = []
    current_rva = base_rva
    for _ in range(cursor.element_count(declared)):
        values = cursor.try_read_struct(layouts.MEMORY64_DESCRIPTOR)
        if values is None:
            break
        start, size = values
        if size > 0:
            segments.append(
                MemorySegment(start=start, size=size, file_offset=current_rva)
            )
            current_rva += size
    return segments


def decode_memory_info_list(
    cursor: StreamCursor, directory: Directory
) -> List[MemoryRegion]:
    cursor.seek(directory.rva)
    header_size, entry_size, declared = cursor.read_struct(layouts.MEMORY_INFO_LIST)
    if entry_size != layouts.MEMORY_INFO.size:
        raise MalformedStream(
            cursor.kind,
            f"entry size {entry_size} != {layouts.MEMORY_INFO.size}",
        )
    if header_size < layouts.MEMORY_INFO_LIST.size:
        raise MalformedStream(cursor.kind, f"header size {header_size} too small")

    cursor.seek(directory.rva + header_size)
    regions: List[MemoryRegion] = []
    for _ in range(cursor.element_count(declared)):
        values = cursor.try_read_struct(layouts.MEMORY_INFO)
        if values is None:
            break
        (
            base,
            allocation_base,
            allocation_protect,
            _pad1,
            region_size,
            state,
            protect,
            region_type,
            _pad2,
        ) = values
        regions.append(
            MemoryRegion(
                base_address=base,
                allocation_base=allocation_base,
                allocation_protect=allocation_protect,
                region_size=region_size,
                state=state,
                protect=protect,
                type=region_type,
            )
        )
    return regions


def decode_system_info(cursor: StreamCursor, directory: Directory) -> SystemInfo:
    cursor.seek(directory.rva)
    (
        arch,
        level,
        revision,
        processors,
        product_type,
        major,
        minor,
        build,
        platform_id,
        csd_version_rva,
        suite_mask,
        _reserved,
        cpu_information,
    ) = cursor.read_struct(layouts.SYSTEM_INFO)
    return SystemInfo(
        processor_architecture=arch,
        processor_level=level,
        processor_revision=revision,
        number_of_processors=processors,
        product_type=product_type,
        major_version=major,
        minor_version=minor,
        build_number=build,
        platform_id=platform_id,
        csd_version_rva=csd_version_rva,
        suite_mask=suite_mask,
        cpu_information=cpu_information,
    )


def decode_exception(cursor: StreamCursor, directory: Directory) -> ExceptionInfo:
    cursor.seek(directory.rva)
    values = cursor.read_struct(layouts.EXCEPTION)
    thread_id, _pad, code, flags, record, address, parameter_count, _pad2 = values[:8]
    parameters = values[8 : 8 + layouts.MAX_EXCEPTION_PARAMETERS]
    context_size, context_rva = values[-2:]
    kept = min(parameter_count, layouts.MAX_EXCEPTION_PARAMETERS)
    return ExceptionInfo(
        thread_id=thread_id,
        exception_code=code,
        exception_flags=flags,
        exception_record=record,
        exception_address=address,
        parameter_count=parameter_count,
        parameters=tuple(parameters[:kept]),
        context=_location(context_size, context_rva),
    )


def decode_misc_info(cursor: StreamCursor, directory: Directory) -> MiscInfo:
    cursor.seek(directory.rva)
    (
        size_of_info,
        flags1,
        process_id,
        create_time,
        user_time,
        kernel_time,
    ) = cursor.read_struct(layouts.MISC_INFO)

    extended = {}
    if size_of_info >= layouts.MISC_INFO.size + layouts.MISC_INFO_2.size:
        (
            extended["processor_max_mhz"],
            extended["processor_current_mhz"],
            extended["processor_mhz_limit"],
            extended["processor_max_idle_state"],
            extended["processor_current_idle_state"],
        ) = cursor.read_struct(layouts.MISC_INFO_2)

    return MiscInfo(
        size_of_info=size_of_info,
        flags1=flags1,
        process_id=process_id,
        process_create_time=create_time,
        process_user_time=user_time,
        process_kernel_time=kernel_time,
        **extended,
    )


def decode_handle_data(
    cursor: StreamCursor, directory: Directory
) -> List[HandleDescriptor]:
    cursor.seek(directory.rva)
    header_size, descriptor_size, declared, _reserved = cursor.read_struct(
        layouts.HANDLE_DATA
    )
    if descriptor_size < layouts.HANDLE_DESCRIPTOR.size:
        raise MalformedStream(
            cursor.kind, f"descriptor size {descriptor_size} too small"
        )
    if header_size < layouts.HANDLE_DATA.size:
        raise MalformedStream(cursor.kind, f"header size {header_size} too small")

    cursor.seek(directory.rva + header_size)
    handles: List[HandleDescriptor] = []
    for _ in range(cursor.element_count(declared)):
        data = cursor.fp.read(descriptor_size)
        if len(data) < descriptor_size:
            break
        (
            handle,
            type_name_rva,
            object_name_rva,
            attributes,
            granted_access,
            handle_count,
            pointer_count,
        ) = layouts.HANDLE_DESCRIPTOR.unpack_from(data)
        object_info_rva = 0
        if descriptor_size >= layouts.HANDLE_DESCRIPTOR.size + 8:
            (object_info_rva,) = struct.unpack_from(
                "<I", data, layouts.HANDLE_DESCRIPTOR.size
            )
        handles.append(
            HandleDescriptor(
                handle=handle,
                type_name_rva=type_name_rva,
                object_name_rva=object_name_rva,
                attributes=attributes,
                granted_access=granted_access,
                handle_count=handle_count,
                pointer_count=pointer_count,
                type_name=cursor.read_name(type_name_rva),
                object_name=cursor.read_name(object_name_rva),
                object_info_rva=object_info_rva,
            )
        )
    return handles


Decoder = Callable[[StreamCursor, Directory], object]

DECODERS: Dict[StreamType, Decoder] = {
    StreamType.THREAD_LIST: decode_thread_list,
    StreamType.MODULE_LIST: decode_module_list,
    StreamType.MEMORY_LIST: decode_memory_list,
    StreamType.MEMORY64_LIST: decode_memory64_list,
    StreamType.MEMORY_INFO_LIST: decode_memory_info_list,
    StreamType.SYSTEM_INFO: decode_system_info,
    StreamType.EXCEPTION: decode_exception,
    StreamType.MISC_INFO: decode_misc_info,
    StreamType.HANDLE_DATA: decode_handle_data,
}
