from __future__ import annotations

from typing import Optional

from .core import ParserConfig
from .session import Session
from .snapshot import MemoryReader, MinidumpSnapshot, Snapshot


def load_minidump(path: str, config: Optional[ParserConfig] = None) -> Snapshot:
    return MinidumpSnapshot.load(path, config)


def load_minidump_bytes(data: bytes, config: Optional[ParserConfig] = None) -> Snapshot:
    return MinidumpSnapshot.from_bytes(data, config)


def open_minidump(path: str, config: Optional[ParserConfig] = None) -> Session:
    snapshot = load_minidump(path, config)
    return Session(snapshot=snapshot, memory=snapshot.reader())


__all__ = [
    "MemoryReader",
    "ParserConfig",
    "Session",
    "Snapshot",
    "load_minidump",
    "load_minidump_bytes",
    "open_minidump",
]
