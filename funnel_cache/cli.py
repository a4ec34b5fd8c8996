from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .errors import CacheWriteError, ConfigError
from .pipeline import run_pipeline
from .registry import load_config


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="funnel-cache",
        description="Fetch the funnel Google Sheets and refresh the local JSON cache.",
    )
    p.add_argument("--config", help="Optional JSON config (sources, cache_dir, timeout_seconds).")
    p.add_argument("--cache-dir", help="Output directory (default: public/cached-data).")
    p.add_argument(
        "--debug",
        action="store_true",
        help="Print tracebacks for per-source failures.",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        cfg = load_config(Path(args.config).expanduser() if args.config else None)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    if args.cache_dir:
        cfg = replace(cfg, cache_dir=Path(args.cache_dir).expanduser())

    print("[info] fetching fresh funnel data from Google Sheets")
    try:
        result = run_pipeline(
            registry=cfg.registry,
            cache_dir=cfg.cache_dir,
            timeout_seconds=cfg.timeout_seconds,
            debug=args.debug,
        )
    except CacheWriteError as exc:
        print(f"ERROR: funnel cache update failed: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n[info] Interrupted by user (Ctrl+C).", file=sys.stderr)
        return 130
    except Exception as exc:
        print(f"ERROR: funnel cache update failed: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    return int(result.exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
