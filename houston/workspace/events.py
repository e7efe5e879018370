"""
History event log decoding.

Each ticket keeps history.ndjson: one JSON object per line, appended on every
mutation and never rewritten. Lines decode into tagged variants:

    {"ts": "...", "actor": "user:alice", "op": "create", "to": "Backlog"}
    {"ts": "...", "actor": "user:alice", "op": "status", "from": "Backlog", "to": "Ready"}

`to` and `from` may also be mappings carrying a `status` key. Any other op
decodes to a plain Event.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from houston.lib.dates import parse_date


class HistoryDecodeError(ValueError):
    """A history line is not a JSON object."""

    def __init__(self, line: int, message: str):
        self.line = line
        super().__init__(f"line {line}: {message}")


class HistoryTooLargeError(Exception):
    """A history file exceeds the configured size cap."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"History file is {size} bytes, limit is {limit}")


@dataclass
class Event:
    """A decoded history entry."""
    line: int
    op: Optional[str]
    ts: Optional[str] = None
    timestamp: Optional[datetime] = None  # Parsed ts, None if missing or invalid
    actor: Optional[str] = None


@dataclass
class CreateEvent(Event):
    to_status: Optional[str] = None


@dataclass
class StatusEvent(Event):
    from_status: Optional[str] = None
    to_status: Optional[str] = None


def status_value(value: Any) -> Optional[str]:
    """Status carried by a `to`/`from` field: a string or {status: ...}."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("status"), str):
        return value["status"]
    return None


def decode_event(text: str, line: int) -> Event:
    """
    Decode one history line.

    Raises:
        HistoryDecodeError: if the line is not valid JSON or not an object
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise HistoryDecodeError(line, f"Invalid JSON entry: {e.msg}") from None
    if not isinstance(raw, dict):
        raise HistoryDecodeError(line, "Invalid JSON entry: expected an object")

    ts = raw.get("ts") if isinstance(raw.get("ts"), str) else None
    op = raw.get("op") if isinstance(raw.get("op"), str) and raw["op"].strip() else None
    common = {
        "line": line,
        "op": op,
        "ts": ts,
        "timestamp": parse_date(ts),
        "actor": raw.get("actor") if isinstance(raw.get("actor"), str) else None,
    }

    if op == "create":
        return CreateEvent(**common, to_status=status_value(raw.get("to")))
    if op == "status":
        return StatusEvent(
            **common,
            from_status=status_value(raw.get("from")),
            to_status=status_value(raw.get("to")),
        )
    return Event(**common)


def read_history_lines(path: Path, max_bytes: int) -> list[tuple[int, bytes]]:
    """
    Read non-blank raw lines with their 1-based line numbers.

    Lines break on "\\n" only, with a trailing "\\r" dropped; a raw U+2028
    inside a JSON string stays on its line. Lines come back undecoded and
    iter_events decodes each one on its own.

    Raises:
        FileNotFoundError: if the file does not exist
        HistoryTooLargeError: if the file exceeds max_bytes
    """
    size = path.stat().st_size
    if size > max_bytes:
        raise HistoryTooLargeError(size, max_bytes)

    lines = []
    for lineno, raw in enumerate(path.read_bytes().split(b"\n"), 1):
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        if raw.strip():
            lines.append((lineno, raw))
    return lines


def iter_events(lines: list[tuple[int, bytes]]) -> Iterator[Event | HistoryDecodeError]:
    """Decode lines in file order, yielding the error in place of a bad line."""
    for lineno, raw in lines:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            yield HistoryDecodeError(lineno, f"Invalid UTF-8 at byte {e.start}: {e.reason}")
            continue
        try:
            yield decode_event(text, lineno)
        except HistoryDecodeError as e:
            yield e
