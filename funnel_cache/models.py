from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .utils import epoch_millis, iso_millis, utc_now


SOURCE_LABEL_PREFIX = "Google Sheets"


@dataclass(frozen=True)
class SheetSnapshot:
    headers: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...]
    last_updated: str
    timestamp: int
    source: str
    url: str

    @classmethod
    def build(
        cls,
        *,
        name: str,
        url: str,
        headers: list[str],
        rows: list[list[Any]],
        fetched_at: datetime | None = None,
    ) -> "SheetSnapshot":
        at = fetched_at or utc_now()
        return cls(
            headers=tuple(headers),
            rows=tuple(tuple(r) for r in rows),
            last_updated=iso_millis(at),
            timestamp=epoch_millis(at),
            source=f"{SOURCE_LABEL_PREFIX} - {name}",
            url=url,
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": [list(r) for r in self.rows],
            "lastUpdated": self.last_updated,
            "timestamp": self.timestamp,
            "source": self.source,
            "url": self.url,
            "rowCount": self.row_count,
        }


@dataclass(frozen=True)
class RunSummary:
    last_updated: str
    timestamp: int
    sources: tuple[str, ...]
    successful_sources: int
    saved_files: tuple[str, ...]

    @classmethod
    def build(
        cls,
        *,
        sources: list[str],
        successful_sources: int,
        saved_files: list[str],
        finished_at: datetime | None = None,
    ) -> "RunSummary":
        at = finished_at or utc_now()
        return cls(
            last_updated=iso_millis(at),
            timestamp=epoch_millis(at),
            sources=tuple(sources),
            successful_sources=successful_sources,
            saved_files=tuple(saved_files),
        )

    @property
    def total_sources(self) -> int:
        return len(self.sources)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastUpdated": self.last_updated,
            "timestamp": self.timestamp,
            "sources": list(self.sources),
            "totalSources": self.total_sources,
            "successfulSources": self.successful_sources,
            "savedFiles": list(self.saved_files),
        }
