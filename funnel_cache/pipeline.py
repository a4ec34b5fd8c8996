from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import requests

from .cache import CacheWriter
from .errors import CacheWriteError
from .models import RunSummary
from .registry import METADATA_FILENAME, SourceRegistry
from .sources.base import Source, SourceResult
from .sources.gviz import GvizSheetSource
from .utils import exception_payload


@dataclass(frozen=True)
class PipelineResult:
    cache_dir: Path
    summary: RunSummary
    results: tuple[SourceResult, ...]
    exit_code: int

    @property
    def failed(self) -> list[SourceResult]:
        return [r for r in self.results if not r.ok]


def _print_failure(name: str, error: dict[str, Any] | None, elapsed_ms: int) -> None:
    err = error or {}
    print(f"[error] {name}: {err.get('message', 'unknown error')} ({elapsed_ms} ms)", file=sys.stderr)
    # only present when the run was started with debug=True
    if err.get("traceback"):
        print(err["traceback"].rstrip(), file=sys.stderr)
    print(f"[skip] {name}: continuing", file=sys.stderr)


def _print_summary(summary: RunSummary) -> None:
    print()
    print("[summary] funnel cache updated")
    print(f"[summary] total sources: {summary.total_sources}")
    print(f"[summary] fetched: {summary.successful_sources}")
    print(f"[summary] files saved: {len(summary.saved_files)}")
    for filename in summary.saved_files:
        print(f"   - {filename}")
    print(f"[summary] metadata: {METADATA_FILENAME}")
    print(f"[summary] timestamp: {summary.last_updated}")


def run_pipeline(
    *,
    registry: SourceRegistry,
    cache_dir: Path,
    session: requests.Session | None = None,
    timeout_seconds: float | None = None,
    debug: bool = False,
) -> PipelineResult:
    """
    Fetch every registered sheet in order and write it to ``cache_dir``.

    A source that fails to fetch, parse or write is recorded and skipped.
    Only a cache directory that cannot be created, or a metadata file that
    cannot be written, raises (CacheWriteError).
    """
    writer = CacheWriter(cache_dir)
    writer.ensure_dir()

    results: list[SourceResult] = []
    saved_files: list[str] = []
    fetched = 0

    for entry in registry:
        print(f"[fetch] {entry.name}...")
        src: Source = GvizSheetSource(entry=entry, session=session, timeout_seconds=timeout_seconds, debug=debug)
        result = src.run()

        if not result.ok or result.snapshot is None:
            _print_failure(entry.name, result.error, result.elapsed_ms)
            results.append(result)
            continue

        fetched += 1
        snapshot = result.snapshot
        print(f"[ok] {entry.name}: {snapshot.row_count} rows ({result.elapsed_ms} ms)")

        try:
            writer.write_snapshot(snapshot, entry.filename)
        except CacheWriteError as exc:
            failed = replace(result, ok=False, error=exception_payload(exc, debug=debug), stage="write")
            _print_failure(entry.name, failed.error, failed.elapsed_ms)
            results.append(failed)
            continue

        saved_files.append(entry.filename)
        print(f"[saved] {entry.filename} ({snapshot.row_count} rows)")
        results.append(replace(result, saved_file=entry.filename))

    summary = RunSummary.build(
        sources=registry.names,
        successful_sources=fetched,
        saved_files=saved_files,
    )
    writer.write_summary(summary)
    _print_summary(summary)

    return PipelineResult(cache_dir=cache_dir, summary=summary, results=tuple(results), exit_code=0)
