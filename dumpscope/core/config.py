from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ParserConfig:
    # ceiling on elements read from any file-declared list count
    max_elements: int = 10_000
    # indirect names must be shorter than this many bytes
    max_name_length: int = 2048
    # abort the whole parse on the first malformed known stream
    strict: bool = False
