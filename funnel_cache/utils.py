from __future__ import annotations

import json
import time
import traceback
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_millis(dt: datetime) -> str:
    # 2024-05-01T10:20:30.123Z
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_millis(dt: datetime) -> int:
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2)


@dataclass
class Timer:
    start: float

    @classmethod
    def start_new(cls) -> "Timer":
        return cls(start=time.time())

    def elapsed_ms(self) -> int:
        return int((time.time() - self.start) * 1000)


def exception_payload(exc: BaseException, debug: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if debug:
        payload["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return payload
