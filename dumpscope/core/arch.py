from __future__ import annotations

from enum import IntEnum
from typing import Dict, Optional


class Architecture(IntEnum):
    """Processor architecture tags as recorded in the system info stream."""

    INTEL = 0
    MIPS = 1
    ALPHA = 2
    PPC = 3
    SHX = 4
    ARM = 5
    IA64 = 6
    ALPHA64 = 7
    MSIL = 8
    AMD64 = 9
    IA32_ON_WIN64 = 10
    NEUTRAL = 11
    ARM64 = 12
    ARM32_ON_WIN64 = 13
    IA32_ON_ARM64 = 14
    AARCH64 = 15
    UNKNOWN = 0xFFFF

    @classmethod
    def from_tag(cls, tag: Optional[int]) -> "Architecture":
        if tag is None:
            return cls.UNKNOWN
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_64bit(self) -> bool:
        return self in _64BIT

    @property
    def bits(self) -> int:
        return 64 if self.is_64bit else 32

    @property
    def pointer_size(self) -> int:
        return self.bits // 8

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self, "UNKNOWN")


_64BIT = frozenset(
    (Architecture.AMD64, Architecture.IA64, Architecture.ARM64, Architecture.AARCH64)
)

_DISPLAY_NAMES: Dict[Architecture, str] = {
    Architecture.INTEL: "INTEL",
    Architecture.AMD64: "AMD64",
    Architecture.ARM: "ARM",
    Architecture.AARCH64: "AARCH64",
    Architecture.IA64: "IA64",
    Architecture.ARM64: "ARM64",
}

