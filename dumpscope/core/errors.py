from typing import Optional


class DumpscopeError(Exception):
    """Base exception for dumpscope errors."""


class MinidumpError(DumpscopeError):
    """Raised when a minidump cannot be decoded."""


class MalformedHeader(MinidumpError):
    """Raised when the header is truncated or carries the wrong signature."""


class MalformedDirectory(MinidumpError):
    """Raised when the stream directory is truncated."""


class MalformedStream(MinidumpError):
    """Raised when a known stream fails to decode."""

    def __init__(self, kind: str, reason: str = ""):
        self.kind = kind
        self.reason = reason
        message = f"malformed {kind} stream"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MemoryAccessError(DumpscopeError):
    """Raised when virtual memory cannot be read from the dump."""


class AddressNotMapped(MemoryAccessError):
    """Raised when no captured segment contains an address."""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"address 0x{address:x} is not mapped")


class CrossesSegmentBoundary(MemoryAccessError):
    """Raised when a read would run past the end of its segment."""

    def __init__(self, address: int, size: int, segment_end: Optional[int] = None):
        self.address = address
        self.size = size
        self.segment_end = segment_end
        message = f"read of 0x{size:x} bytes at 0x{address:x} crosses a segment boundary"
        if segment_end is not None:
            message = f"{message} (segment ends at 0x{segment_end:x})"
        super().__init__(message)
