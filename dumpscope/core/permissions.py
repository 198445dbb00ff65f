from enum import IntFlag


class MemoryPermissions(IntFlag):
    NONE = 0
    READ = 0b001
    WRITE = 0b010
    EXECUTE = 0b100

    RW = READ | WRITE
    RX = READ | EXECUTE
    RWX = READ | WRITE | EXECUTE

    @classmethod
    def from_page_protect(cls, protect: int) -> "MemoryPermissions":
        """Map a Windows PAGE_* protection value onto read/write/execute bits."""
        # guard / nocache / writecombine modifiers live above the low byte
        base = protect & 0xFF
        return _PAGE_PROTECT.get(base, cls.NONE)


_PAGE_PROTECT = {
    0x01: MemoryPermissions.NONE,  # PAGE_NOACCESS
    0x02: MemoryPermissions.READ,  # PAGE_READONLY
    0x04: MemoryPermissions.RW,  # PAGE_READWRITE
    0x08: MemoryPermissions.RW,  # PAGE_WRITECOPY
    0x10: MemoryPermissions.EXECUTE,  # PAGE_EXECUTE
    0x20: MemoryPermissions.RX,  # PAGE_EXECUTE_READ
    0x40: MemoryPermissions.RWX,  # PAGE_EXECUTE_READWRITE
    0x80: MemoryPermissions.RWX,  # PAGE_EXECUTE_WRITECOPY
}
