from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from .errors import ConfigError, RegistryError


METADATA_FILENAME = "funnel-metadata.json"
DEFAULT_CACHE_SUBDIR = Path("public") / "cached-data"

_SHEETS_BASE = "https://docs.google.com/spreadsheets/d"
_LOCATIONS_DOC = "1Ewhi3YCL-dUWZ3YrHpsmWt4goza-5c1FbDyfDcw26lw"
_FUNNEL_DOC = "14Z3M53yZB8Fh0bhMp2SaPvdzeFulMi_N6HWglSFW3yY"


def gviz_url(doc_id: str, gid: int | str) -> str:
    return f"{_SHEETS_BASE}/{doc_id}/gviz/tq?tqx=out:json&gid={gid}"


@dataclass(frozen=True)
class SourceEntry:
    name: str
    url: str
    filename: str


DEFAULT_SOURCES: tuple[SourceEntry, ...] = (
    SourceEntry("locations", gviz_url(_LOCATIONS_DOC, 880351439), "locations.json"),
    SourceEntry("timeseries", gviz_url(_LOCATIONS_DOC, 478356689), "timeseries.json"),
    SourceEntry("funnel-default", gviz_url(_FUNNEL_DOC, 0), "funnel-default.json"),
    SourceEntry("funnel-global", gviz_url(_FUNNEL_DOC, 603895130), "funnel-global.json"),
    SourceEntry("config", gviz_url(_LOCATIONS_DOC, 940884547), "config.json"),
)


@dataclass(frozen=True)
class SourceRegistry:
    """Ordered, read-only collection of sources to fetch.

    Names and filenames are unique, and no filename may collide with the
    metadata file written at the end of a run.
    """

    entries: tuple[SourceEntry, ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise RegistryError("registry must contain at least one source")

        names: set[str] = set()
        filenames: set[str] = set()
        for entry in self.entries:
            for field in ("name", "url", "filename"):
                value = getattr(entry, field)
                if not isinstance(value, str) or not value.strip():
                    raise RegistryError(f"source {entry.name!r}: '{field}' must be a non-empty string")
            if "/" in entry.filename or "\\" in entry.filename:
                raise RegistryError(f"source {entry.name!r}: filename must not contain a path separator")
            if entry.filename == METADATA_FILENAME:
                raise RegistryError(f"source {entry.name!r}: filename {METADATA_FILENAME} is reserved")
            if entry.name in names:
                raise RegistryError(f"duplicate source name: {entry.name}")
            if entry.filename in filenames:
                raise RegistryError(f"duplicate source filename: {entry.filename}")
            names.add(entry.name)
            filenames.add(entry.filename)

    @classmethod
    def from_entries(cls, entries: Iterable[SourceEntry]) -> "SourceRegistry":
        return cls(entries=tuple(entries))

    @classmethod
    def default(cls) -> "SourceRegistry":
        return cls(entries=DEFAULT_SOURCES)

    def __iter__(self) -> Iterator[SourceEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def get(self, name: str) -> SourceEntry | None:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None


@dataclass(frozen=True)
class RunConfig:
    registry: SourceRegistry
    cache_dir: Path
    timeout_seconds: float | None = None


def _entry_from_cfg(i: int, source_cfg: Any) -> SourceEntry:
    if not isinstance(source_cfg, dict):
        raise ConfigError(f"sources[{i}] is not an object")
    missing = sorted({"name", "url", "filename"}.difference(source_cfg.keys()))
    if missing:
        raise ConfigError(f"sources[{i}] missing keys: {missing}")
    return SourceEntry(
        name=str(source_cfg["name"]),
        url=str(source_cfg["url"]),
        filename=str(source_cfg["filename"]),
    )


def config_from_dict(cfg: dict[str, Any], *, base_dir: Path) -> RunConfig:
    """Build a RunConfig from a parsed config object.

    Every key is optional; missing keys fall back to the built-in funnel
    sources, ``public/cached-data`` under ``base_dir`` and no timeout.
    """
    if not isinstance(cfg, dict):
        raise ConfigError("config must be a JSON object")

    sources_cfg = cfg.get("sources")
    if sources_cfg is None:
        registry = SourceRegistry.default()
    else:
        if not isinstance(sources_cfg, list) or len(sources_cfg) == 0:
            raise ConfigError("config.sources must be a non-empty list")
        registry = SourceRegistry.from_entries(_entry_from_cfg(i, s) for i, s in enumerate(sources_cfg))

    raw_dir = cfg.get("cache_dir")
    if raw_dir is None:
        cache_dir = base_dir / DEFAULT_CACHE_SUBDIR
    else:
        p = Path(str(raw_dir)).expanduser()
        cache_dir = p if p.is_absolute() else base_dir / p

    timeout = cfg.get("timeout_seconds")
    if timeout is not None:
        try:
            timeout = float(timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"timeout_seconds must be a number, got {timeout!r}") from exc

    return RunConfig(registry=registry, cache_dir=cache_dir, timeout_seconds=timeout)


def load_config(path: Path | None, *, base_dir: Path | None = None) -> RunConfig:
    base = base_dir if base_dir is not None else Path.cwd()
    if path is None:
        return config_from_dict({}, base_dir=base)
    if not path.exists():
        raise ConfigError(f"config not found at {path}")
    try:
        cfg = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"failed to read config {path}: {exc}") from exc
    return config_from_dict(cfg, base_dir=base)
