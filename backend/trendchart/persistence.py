"""Durable local copy of the session's trendlines.

Only the viewport-independent fields are written; pixel hints are reset on
load and recomputed by the coordinate mapper before the next render.
"""
import json
import logging
import math
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .config import DEFAULT_TRENDLINE_COLOR, TRENDLINES_STORAGE_KEY, local_state_path
from .models import Trendline, TrendlinePoint

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


class SqliteKeyValueStore:
    """Single-table key/value store kept next to the other local databases."""

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = str(path or local_state_path())
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS local_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def get(self, key: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM local_state WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO local_state (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM local_state WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()


def serialize_trendlines(trendlines: Iterable[Trendline]) -> str:
    return json.dumps(
        [
            {
                "id": trendline.id,
                "start": trendline.start.to_dict(),
                "end": trendline.end.to_dict(),
                "color": trendline.color,
            }
            for trendline in trendlines
        ]
    )


def _reject_constant(name: str) -> float:
    raise ValueError(f"Non-finite number in stored trendlines: {name}")


def _restore_point(raw: dict) -> TrendlinePoint:
    timestamp = float(raw["timestamp"])
    price = float(raw["price"])
    if not (math.isfinite(timestamp) and math.isfinite(price)):
        raise ValueError(f"Non-finite trendline point: {raw!r}")
    return TrendlinePoint(timestamp=int(timestamp), price=price)


def deserialize_trendlines(raw: str) -> List[Trendline]:
    """Parse a stored payload; raises on anything malformed."""
    items = json.loads(raw, parse_constant=_reject_constant)
    if not isinstance(items, list):
        raise ValueError(f"Expected a list of trendlines, got {type(items).__name__}")
    restored: List[Trendline] = []
    for item in items:
        restored.append(
            Trendline(
                id=str(item["id"]),
                start=_restore_point(item["start"]),
                end=_restore_point(item["end"]),
                color=item.get("color") or DEFAULT_TRENDLINE_COLOR,
            )
        )
    return restored


class TrendlinePersistence:
    def __init__(self, store=None, key: str = TRENDLINES_STORAGE_KEY) -> None:
        self.store = store if store is not None else MemoryKeyValueStore()
        self.key = key
        self.writes = 0

    def save(self, trendlines: Iterable[Trendline]) -> None:
        self.store.set(self.key, serialize_trendlines(trendlines))
        self.writes += 1

    def load(self) -> List[Trendline]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            return deserialize_trendlines(raw)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to load saved trendlines; starting empty")
            return []

    def clear(self) -> None:
        self.store.delete(self.key)
        self.writes += 1
