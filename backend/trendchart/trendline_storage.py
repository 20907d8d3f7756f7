"""Storage for remote trendline records."""
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config import STORAGE_BACKEND, trendlines_db_path
from .schemas import TrendlineCreate, TrendlineRecord, TrendlineUpdate


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class MemTrendlineStorage:
    """Process-local storage; ids come from a counter and are never reused."""

    def __init__(self) -> None:
        self._trendlines: Dict[int, TrendlineRecord] = {}
        self._next_id = 1

    def list_trendlines(self) -> List[TrendlineRecord]:
        return list(self._trendlines.values())

    def get_trendline(self, trendline_id: int) -> Optional[TrendlineRecord]:
        return self._trendlines.get(trendline_id)

    def create_trendline(self, data: TrendlineCreate) -> TrendlineRecord:
        trendline_id = self._next_id
        self._next_id += 1
        record = TrendlineRecord(id=trendline_id, created_at=_now(), **data.model_dump())
        self._trendlines[trendline_id] = record
        return record

    def update_trendline(self, trendline_id: int, updates: TrendlineUpdate) -> Optional[TrendlineRecord]:
        record = self._trendlines.get(trendline_id)
        if record is None:
            return None
        updated = TrendlineRecord.model_validate({**record.model_dump(), **updates.model_dump(exclude_unset=True)})
        self._trendlines[trendline_id] = updated
        return updated

    def delete_trendline(self, trendline_id: int) -> bool:
        return self._trendlines.pop(trendline_id, None) is not None


class SqliteTrendlineStorage:
    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = str(path or trendlines_db_path())
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        conn = self._connect()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS trendlines (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                start_timestamp INTEGER NOT NULL,
                start_price REAL NOT NULL,
                end_timestamp INTEGER NOT NULL,
                end_price REAL NOT NULL,
                color TEXT DEFAULT '#2962FF',
                created_at TEXT NOT NULL
            )
        """)
        conn.commit()
        conn.close()

    @staticmethod
    def _to_record(row: sqlite3.Row) -> TrendlineRecord:
        return TrendlineRecord(
            id=row["id"],
            user_id=row["user_id"],
            start_timestamp=row["start_timestamp"],
            start_price=row["start_price"],
            end_timestamp=row["end_timestamp"],
            end_price=row["end_price"],
            color=row["color"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def list_trendlines(self) -> List[TrendlineRecord]:
        conn = self._connect()
        rows = conn.execute("SELECT * FROM trendlines ORDER BY id ASC").fetchall()
        conn.close()
        return [self._to_record(row) for row in rows]

    def get_trendline(self, trendline_id: int) -> Optional[TrendlineRecord]:
        conn = self._connect()
        row = conn.execute("SELECT * FROM trendlines WHERE id = ?", (trendline_id,)).fetchone()
        conn.close()
        return self._to_record(row) if row else None

    def create_trendline(self, data: TrendlineCreate) -> TrendlineRecord:
        conn = self._connect()
        cursor = conn.execute(
            """
            INSERT INTO trendlines
            (user_id, start_timestamp, start_price, end_timestamp, end_price, color, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data.user_id,
                data.start_timestamp,
                data.start_price,
                data.end_timestamp,
                data.end_price,
                data.color,
                _now().isoformat(),
            ),
        )
        conn.commit()
        trendline_id = cursor.lastrowid
        conn.close()
        record = self.get_trendline(trendline_id)
        assert record is not None
        return record

    def update_trendline(self, trendline_id: int, updates: TrendlineUpdate) -> Optional[TrendlineRecord]:
        changes = updates.model_dump(exclude_unset=True)
        if not changes:
            return self.get_trendline(trendline_id)
        # Column names come from the pydantic model, never from user input.
        assignments = ", ".join(f"{column} = ?" for column in changes)
        conn = self._connect()
        cursor = conn.execute(
            f"UPDATE trendlines SET {assignments} WHERE id = ?",
            (*changes.values(), trendline_id),
        )
        conn.commit()
        affected = cursor.rowcount
        conn.close()
        if affected == 0:
            return None
        return self.get_trendline(trendline_id)

    def delete_trendline(self, trendline_id: int) -> bool:
        conn = self._connect()
        cursor = conn.execute("DELETE FROM trendlines WHERE id = ?", (trendline_id,))
        conn.commit()
        affected = cursor.rowcount
        conn.close()
        return affected > 0


TrendlineStorage = Union[MemTrendlineStorage, SqliteTrendlineStorage]


def create_storage(backend: Optional[str] = None) -> TrendlineStorage:
    backend = (backend or STORAGE_BACKEND).lower()
    if backend == "memory":
        return MemTrendlineStorage()
    if backend == "sqlite":
        return SqliteTrendlineStorage()
    raise ValueError(f"Unsupported storage backend: {backend}")
