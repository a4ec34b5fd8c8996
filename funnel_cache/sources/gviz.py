from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import requests

from ..errors import FetchError, ParseError
from ..models import SheetSnapshot
from ..registry import SourceEntry
from ..utils import Timer, exception_payload
from .base import SourceResult


NO_DATA = "no data found"


def extract_jsonp_payload(text: str) -> str:
    """
    Cut the JSON object out of a gviz JSONP envelope such as
    ``/*O_o*/\\ngoogle.visualization.Query.setResponse({...});``.

    Takes everything after the first "(" up to and including the last "}".
    Without a "(" the slice starts at 0; without a "}" it is empty.
    """
    start = text.find("(") + 1
    end = text.rfind("}") + 1
    return text[start:end]


def _label(col: Any) -> Any:
    if not isinstance(col, dict):
        return ""
    label = col.get("label")
    return "" if label is None else label


def _headers_from_cols(cols: Any, source_id: str) -> list[str]:
    if cols is None:
        return []
    if not isinstance(cols, list):
        raise ParseError(source_id, f"table.cols is not a list: {type(cols).__name__}")
    return [_label(col) for col in cols]


def _cell_value(cell: Any) -> Any:
    if not isinstance(cell, dict):
        return ""
    v = cell.get("v")
    return "" if v is None else v


def _rows_from_table(rows: list[Any], source_id: str) -> list[list[Any]]:
    out: list[list[Any]] = []
    for i, row in enumerate(rows):
        cells = row.get("c") if isinstance(row, dict) else None
        if cells is None:
            cells = []
        elif not isinstance(cells, list):
            raise ParseError(source_id, f"table.rows[{i}].c is not a list: {type(cells).__name__}")
        out.append([_cell_value(c) for c in cells])
    return out


def parse_gviz_response(text: str, source_id: str) -> tuple[list[str], list[list[Any]]]:
    """Parse a raw gviz response body into (headers, rows)."""
    json_text = extract_jsonp_payload(text)
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ParseError(source_id, f"response is not valid JSONP: {exc.msg}") from exc

    table = data.get("table") if isinstance(data, dict) else None
    if not isinstance(table, dict) or table.get("rows") is None:
        raise ParseError(source_id, NO_DATA)
    if not isinstance(table["rows"], list):
        raise ParseError(source_id, NO_DATA)

    return _headers_from_cols(table.get("cols"), source_id), _rows_from_table(table["rows"], source_id)


@dataclass(frozen=True)
class GvizSheetSource:
    entry: SourceEntry
    session: requests.Session | None = None
    timeout_seconds: float | None = None
    debug: bool = False

    def run(self) -> SourceResult:
        t = Timer.start_new()
        try:
            snapshot = self.fetch()
            return SourceResult(
                source_id=self.entry.name,
                ok=True,
                snapshot=snapshot,
                elapsed_ms=t.elapsed_ms(),
                error=None,
            )
        except Exception as exc:
            # anything raised for one sheet fails only that sheet
            return SourceResult(
                source_id=self.entry.name,
                ok=False,
                snapshot=None,
                elapsed_ms=t.elapsed_ms(),
                error=exception_payload(exc, debug=self.debug),
                stage="fetch",
            )

    def fetch(self) -> SheetSnapshot:
        text = self._get_text()
        headers, rows = parse_gviz_response(text, self.entry.name)
        return SheetSnapshot.build(name=self.entry.name, url=self.entry.url, headers=headers, rows=rows)

    def _get_text(self) -> str:
        http = self.session if self.session is not None else requests
        try:
            resp = http.get(self.entry.url, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise FetchError(self.entry.name, f"request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise FetchError(self.entry.name, resp.reason or f"HTTP {resp.status_code}", resp.status_code)
        try:
            return resp.text
        except requests.RequestException as exc:
            raise FetchError(self.entry.name, f"failed to read response body: {exc}") from exc
