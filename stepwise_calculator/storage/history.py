"""SQLite-backed calculation history."""
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
import sqlite3
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from stepwise_calculator.common.logger import logger
from stepwise_calculator.common.models import HistoryRecord


_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS calculations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    input TEXT NOT NULL,
    result TEXT NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

_SELECT_COLUMNS = "SELECT id, input, result, created_at FROM calculations"


class HistoryStore(BaseModel):
    """
    Append-only history of calculations stored in a local SQLite file.

    Every call opens its own connection, so calls may run on worker threads
    (e.g. through ``asyncio.to_thread``) without sharing a connection.
    """

    model_config = ConfigDict(frozen=True)

    db_path: Path = Field(..., description="SQLite database file")

    def _connect(self) -> sqlite3.Connection:
        """Open a connection and make sure the table exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute(_CREATE_TABLE)
        return conn

    @staticmethod
    def _to_record(row: Tuple[int, str, str, str]) -> HistoryRecord:
        """Build a HistoryRecord from a table row (SQLite timestamps are UTC)."""
        row_id, input_text, result_text, created_at = row
        return HistoryRecord(
            id=row_id,
            input_text=input_text,
            result_text=result_text,
            created_at=datetime.fromisoformat(created_at).replace(tzinfo=timezone.utc),
        )

    def insert(self, input_text: str, result_text: str) -> HistoryRecord:
        """
        Append one calculation.

        :param str input_text: Expression or function call as entered
        :param str result_text: Displayed result

        :return: The stored record
        :rtype: HistoryRecord
        """
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                "INSERT INTO calculations (input, result) VALUES (?, ?)",
                (input_text, result_text),
            )
            row = conn.execute(f"{_SELECT_COLUMNS} WHERE id = ?", (cursor.lastrowid,)).fetchone()

        record = self._to_record(row)
        logger.debug(f"💾 Stored calculation #{record.id}: {input_text} = {result_text}")
        return record

    def list_recent(self, limit: int = 20) -> List[HistoryRecord]:
        """
        Return the most recent calculations, most recent first.

        :param int limit: Maximum number of records

        :return: Records ordered from newest to oldest
        :rtype: List[HistoryRecord]
        :raises ValueError: If limit is lower than 1
        """
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        with closing(self._connect()) as conn:
            rows = conn.execute(f"{_SELECT_COLUMNS} ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [self._to_record(row) for row in rows]

    def clear_all(self) -> int:
        """
        Delete every calculation.

        :return: Number of deleted records
        :rtype: int
        """
        with closing(self._connect()) as conn, conn:
            deleted = conn.execute("DELETE FROM calculations").rowcount

        logger.info(f"🧹 Cleared {deleted} history record(s)")
        return deleted
