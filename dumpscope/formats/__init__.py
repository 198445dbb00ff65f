"""
dumpscope.formats - file format parsers
"""

from .layouts import MINIDUMP_SIGNATURE, StreamType, stream_type_name
from .minidump import MinidumpContents, MinidumpParser, StreamFailure, parse_minidump

__all__ = [
    "MINIDUMP_SIGNATURE",
    "StreamType",
    "stream_type_name",
    "MinidumpContents",
    "MinidumpParser",
    "StreamFailure",
    "parse_minidump",
]
