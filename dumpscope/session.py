from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .snapshot.base import Snapshot
from .snapshot.reader import MemoryReader


@dataclass
class Session:
    snapshot: Snapshot
    memory: MemoryReader

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.memory.close()

    def read_pointer(self, address: int) -> Optional[int]:
        return self.memory.read_pointer(address)

    def read_string(self, address: int, max_length: int = 1024) -> str:
        return self.memory.read_string(address, max_length)
