from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import CacheWriteError
from .models import RunSummary, SheetSnapshot
from .registry import METADATA_FILENAME
from .utils import json_dumps


def touch_now(path: Path) -> None:
    """Reset atime/mtime to now so mtime-based change detection always sees a write."""
    now = time.time()
    os.utime(path, (now, now))


@dataclass(frozen=True)
class CacheWriter:
    cache_dir: Path

    def ensure_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheWriteError(str(self.cache_dir), f"cannot create cache directory: {exc}") from exc

    def write(self, payload: Any, filename: str) -> Path:
        self.ensure_dir()
        path = self.cache_dir / filename
        try:
            path.write_text(json_dumps(payload) + "\n", encoding="utf-8")
            # Content may be byte-identical to the previous run.
            touch_now(path)
        except OSError as exc:
            raise CacheWriteError(str(path), f"cannot write file: {exc}") from exc
        return path

    def write_snapshot(self, snapshot: SheetSnapshot, filename: str) -> Path:
        return self.write(snapshot.to_dict(), filename)

    def write_summary(self, summary: RunSummary) -> Path:
        return self.write(summary.to_dict(), METADATA_FILENAME)
