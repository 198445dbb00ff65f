from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

from redlog import field, get_logger

from ..core.config import ParserConfig
from ..formats.minidump import parse_minidump
from .base import Snapshot


class MinidumpSnapshot:
    """Loader for Windows minidump files."""

    @staticmethod
    def load(path: str, config: Optional[ParserConfig] = None) -> Snapshot:
        dump_path = Path(path)
        if not dump_path.exists():
            raise FileNotFoundError(f"minidump file not found: {dump_path}")

        log = get_logger("minidump.loader")
        log.trc(f"loading dump from [{dump_path}]")
        with dump_path.open("rb") as fp:
            contents = parse_minidump(fp, config)

        snapshot = Snapshot(contents=contents, source=str(dump_path))
        _log_summary(log, snapshot)
        return snapshot

    @staticmethod
    def from_bytes(data: bytes, config: Optional[ParserConfig] = None) -> Snapshot:
        data = bytes(data)
        contents = parse_minidump(io.BytesIO(data), config)
        snapshot = Snapshot(contents=contents, source=data)
        _log_summary(get_logger("minidump.loader"), snapshot)
        return snapshot


def _log_summary(log, snapshot: Snapshot) -> None:
    log.dbg(
        "loaded dump",
        field("arch", snapshot.arch.display_name),
        field("threads", len(snapshot.threads)),
        field("modules", len(snapshot.modules)),
        field("segments", len(snapshot.segments)),
        field("regions", len(snapshot.regions)),
        field("failed_streams", len(snapshot.failed_streams)),
    )
