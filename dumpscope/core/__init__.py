from .arch import Architecture
from .config import ParserConfig
from .errors import (
    AddressNotMapped,
    CrossesSegmentBoundary,
    DumpscopeError,
    MalformedDirectory,
    MalformedHeader,
    MalformedStream,
    MemoryAccessError,
    MinidumpError,
)
from .memory import AddressSpace, MemoryRegion, MemorySegment
from .permissions import MemoryPermissions
from .result import ReadResult

__all__ = [
    "Architecture",
    "ParserConfig",
    "AddressNotMapped",
    "CrossesSegmentBoundary",
    "DumpscopeError",
    "MalformedDirectory",
    "MalformedHeader",
    "MalformedStream",
    "MemoryAccessError",
    "MinidumpError",
    "AddressSpace",
    "MemoryRegion",
    "MemorySegment",
    "MemoryPermissions",
    "ReadResult",
]
