"""
On-disk record layouts for the minidump format.

All records are little-endian and packed; sizes match the Windows
definitions, not a compiler-padded equivalent.
"""

from __future__ import annotations

import struct
from enum import IntEnum

MINIDUMP_SIGNATURE = 0x504D444D  # 'MDMP'

MAX_EXCEPTION_PARAMETERS = 15


class StreamType(IntEnum):
    UNUSED = 0
    RESERVED0 = 1
    RESERVED1 = 2
    THREAD_LIST = 3
    MODULE_LIST = 4
    MEMORY_LIST = 5
    EXCEPTION = 6
    SYSTEM_INFO = 7
    THREAD_EX_LIST = 8
    MEMORY64_LIST = 9
    COMMENT_A = 10
    COMMENT_W = 11
    HANDLE_DATA = 12
    FUNCTION_TABLE = 13
    UNLOADED_MODULE_LIST = 14
    MISC_INFO = 15
    MEMORY_INFO_LIST = 16
    THREAD_INFO_LIST = 17
    HANDLE_OPERATION_LIST = 18
    TOKEN = 19
    JAVASCRIPT_DATA = 20
    SYSTEM_MEMORY_INFO = 21
    PROCESS_VM_COUNTERS = 22
    IPT_TRACE = 23
    THREAD_NAMES = 24
    LAST_RESERVED = 0xFFFF


_STREAM_NAMES = {
    StreamType.UNUSED: "Unused",
    StreamType.THREAD_LIST: "ThreadList",
    StreamType.MODULE_LIST: "ModuleList",
    StreamType.MEMORY_LIST: "MemoryList",
    StreamType.EXCEPTION: "Exception",
    StreamType.SYSTEM_INFO: "SystemInfo",
    StreamType.MEMORY64_LIST: "Memory64List",
    StreamType.HANDLE_DATA: "HandleData",
    StreamType.MISC_INFO: "MiscInfo",
    StreamType.MEMORY_INFO_LIST: "MemoryInfoList",
}


def stream_type_name(stream_type: int) -> str:
    try:
        return _STREAM_NAMES.get(StreamType(stream_type), "Unknown")
    except ValueError:
        return "Unknown"


# header: signature, version, implementation_version, stream_count,
# stream_directory_rva, checksum, time_date_stamp, flags
HEADER = struct.Struct("<IHHIIIIQ")

# directory entry: stream_type, data_size, rva
DIRECTORY = struct.Struct("<III")

# list counts preceding thread and module arrays
LIST_COUNT = struct.Struct("<I")

# thread: thread_id, suspend_count, priority_class, priority, teb,
# stack start, stack (data_size, rva), context (data_size, rva)
THREAD = struct.Struct("<IIIIQQIIII")

# module: base, size, checksum, time_date_stamp, name_rva,
# fixed file info (13 dwords), cv record (size, rva), misc record (size, rva),
# reserved0, reserved1
MODULE = struct.Struct("<QIIII52sIIIIQQ")

# memory list descriptor: start, memory (data_size, rva)
MEMORY_DESCRIPTOR = struct.Struct("<QII")

# memory64 list header: count, base_rva
MEMORY64_LIST = struct.Struct("<QQ")

# memory64 descriptor: start, size
MEMORY64_DESCRIPTOR = struct.Struct("<QQ")

# memory info list header: header_size, entry_size, count
MEMORY_INFO_LIST = struct.Struct("<IIQ")

# memory info: base, allocation_base, allocation_protect, pad, region_size,
# state, protect, type, pad
MEMORY_INFO = struct.Struct("<QQIIQIIII")

# system info: arch, level, revision, processors, product_type, major, minor,
# build, platform_id, csd_version_rva, suite_mask, reserved, cpu information
SYSTEM_INFO = struct.Struct("<HHHBBIIIIIHH24s")

# exception stream: thread_id, pad, code, flags, record, address,
# parameter_count, pad, parameters[15], context (data_size, rva)
EXCEPTION = struct.Struct(f"<IIIIQQII{MAX_EXCEPTION_PARAMETERS}QII")

# misc info: size_of_info, flags1, process_id, create_time, user_time,
# kernel_time
MISC_INFO = struct.Struct("<IIIIII")

# misc info 2 extension: max_mhz, current_mhz, mhz_limit, max_idle_state,
# current_idle_state
MISC_INFO_2 = struct.Struct("<IIIII")

# handle data header: header_size, descriptor_size, count, reserved
HANDLE_DATA = struct.Struct("<IIII")

# handle descriptor: handle, type_name_rva, object_name_rva, attributes,
# granted_access, handle_count, pointer_count
HANDLE_DESCRIPTOR = struct.Struct("<QIIIIII")

# name indirection block prefix: length in bytes
STRING_LENGTH = struct.Struct("<I")

