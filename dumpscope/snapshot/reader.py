from __future__ import annotations

import io
from typing import BinaryIO, Optional

from redlog import field, get_logger

from ..core.errors import DumpscopeError, MemoryAccessError
from ..core.memory import MemorySegment
from ..core.result import ReadResult
from .base import Snapshot

DEFAULT_STRING_LENGTH = 1024


class MemoryReader:
    """Serves reads of captured process memory from the dump file.

    Each reader opens its own handle so readers never share a seek cursor.
    A single reader is not safe to use from several threads at once.
    """

    def __init__(self, snapshot: Snapshot):
        self.snapshot = snapshot
        self.log = get_logger("minidump.reader")
        self._fp: Optional[BinaryIO] = self._open()

    def _open(self) -> BinaryIO:
        source = self.snapshot.source
        if isinstance(source, (bytes, bytearray)):
            return io.BytesIO(source)
        return open(source, "rb")

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> "MemoryReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def pointer_size(self) -> int:
        return self.snapshot.pointer_size

    def get_segment(self, address: int) -> Optional[MemorySegment]:
        return self.snapshot.segment_by_address(address)

    def try_read(self, address: int, size: int) -> ReadResult[bytes]:
        try:
            offset = self.snapshot.address_space.translate(address, size)
            if self._fp is None:
                raise MemoryAccessError("reader is closed")
            try:
                self._fp.seek(offset)
                data = self._fp.read(size)
            except (OSError, OverflowError, ValueError) as exc:
                # segment offsets come straight from the file and may not be seekable
                raise MemoryAccessError(
                    f"cannot read 0x{size:x} bytes at file offset 0x{offset:x}: {exc}"
                ) from exc
        except DumpscopeError as exc:
            self.log.ped(
                "memory read failed",
                field("address", f"0x{address:x}"),
                field("size", size),
                field("error", str(exc)),
            )
            return ReadResult.failure(exc)

        if len(data) < size:
            return ReadResult.failure(
                MemoryAccessError(
                    f"segment data at file offset 0x{offset:x} is truncated"
                )
            )
        return ReadResult.success(data)

    def read_bytes(self, address: int, size: int) -> bytes:
        return self.try_read(address, size).unwrap()

    def read_pointer(self, address: int) -> Optional[int]:
        result = self.try_read(address, self.pointer_size)
        if not result.ok:
            return None
        return int.from_bytes(result.value, "little")

    def _read_up_to(self, address: int, max_length: int) -> ReadResult[bytes]:
        segment = self.get_segment(address)
        if segment is not None:
            max_length = min(max_length, segment.end - address)
        return self.try_read(address, max_length)

    def read_string(
        self, address: int, max_length: int = DEFAULT_STRING_LENGTH
    ) -> str:
        data = self._read_up_to(address, max_length).value_or(b"")
        terminator = data.find(b"\x00")
        if terminator != -1:
            data = data[:terminator]
        return data.decode("latin-1")

    def read_wstring(
        self, address: int, max_length: int = DEFAULT_STRING_LENGTH
    ) -> str:
        data = self._read_up_to(address, max_length).value_or(b"")
        for index in range(0, len(data) - 1, 2):
            if data[index] == 0 and data[index + 1] == 0:
                data = data[:index]
                break
        else:
            data = data[: len(data) & ~1]
        return data.decode("utf-16-le", errors="replace")
