from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceError(Exception):
    source_id: str
    message: str

    def __str__(self) -> str:
        return f"[{self.source_id}] {self.message}"


@dataclass(frozen=True)
class FetchError(SourceError):
    status_code: int | None = None


@dataclass(frozen=True)
class ParseError(SourceError):
    pass


class ConfigError(Exception):
    pass


class RegistryError(ConfigError):
    pass


@dataclass(frozen=True)
class CacheWriteError(Exception):
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"
