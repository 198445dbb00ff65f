from .base import Snapshot
from .minidump import MinidumpSnapshot
from .reader import MemoryReader

__all__ = [
    "Snapshot",
    "MinidumpSnapshot",
    "MemoryReader",
]
