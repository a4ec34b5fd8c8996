from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..models import SheetSnapshot


@dataclass(frozen=True)
class SourceResult:
    source_id: str
    ok: bool
    snapshot: SheetSnapshot | None
    elapsed_ms: int
    error: dict[str, Any] | None
    # "fetch" for fetch/parse failures, "write" when the cache file failed
    stage: str | None = None
    saved_file: str | None = None


class Source(Protocol):
    def run(self) -> SourceResult: ...
