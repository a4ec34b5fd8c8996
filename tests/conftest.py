"""
Shared fixtures: a fake requests session so no test touches the network.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import pytest
import requests

from funnel_cache.registry import SourceEntry, SourceRegistry


GVIZ_PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("


def gviz_body(cols: list[dict[str, Any]] | None, rows: list[dict[str, Any]], *, prefix: str = GVIZ_PREFIX) -> str:
    table: dict[str, Any] = {"rows": rows}
    if cols is not None:
        table["cols"] = cols
    payload = {"version": "0.6", "status": "ok", "table": table}
    return prefix + json.dumps(payload) + ");"


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = ""
    reason: str = "OK"


@dataclass
class FakeSession:
    """Maps URL -> FakeResponse or an exception instance to raise."""

    responses: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, Any]] = field(default_factory=list)

    def get(self, url: str, timeout: Any = None) -> FakeResponse:
        self.calls.append((url, timeout))
        resp = self.responses[url]
        if isinstance(resp, Exception):
            raise resp
        return resp


@pytest.fixture
def simple_body() -> str:
    return gviz_body(
        [{"id": "A", "label": "Region", "type": "string"}, {"id": "B", "label": "Leads", "type": "number"}],
        [
            {"c": [{"v": "North"}, {"v": 12.0}]},
            {"c": [{"v": "South"}, {"v": 7.0}]},
        ],
    )


@pytest.fixture
def two_source_registry() -> SourceRegistry:
    return SourceRegistry.from_entries(
        [
            SourceEntry("alpha", "https://sheets.test/alpha", "alpha.json"),
            SourceEntry("beta", "https://sheets.test/beta", "beta.json"),
        ]
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection refused")
