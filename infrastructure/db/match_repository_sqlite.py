from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List

from domain.exceptions import StoreError
from domain.models import MatchRecord, StoredMatch
from domain.repositories import MatchLogRepository


class SqliteMatchRepository(MatchLogRepository):
    """
    SQLite-backed implementation of `MatchLogRepository`.

    Match rows are append-only; `played_at` is stored as ISO-8601 text.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS matches (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_a_id TEXT NOT NULL,
                    user_b_id TEXT NOT NULL,
                    goals_a INTEGER NOT NULL,
                    goals_b INTEGER NOT NULL,
                    rating_delta_a INTEGER NOT NULL,
                    rating_delta_b INTEGER NOT NULL,
                    played_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> StoredMatch:
        return StoredMatch(
            record_id=str(row[0]),
            record=MatchRecord(
                user_a_id=row[1],
                user_b_id=row[2],
                goals_a=int(row[3]),
                goals_b=int(row[4]),
                rating_delta_a=int(row[5]),
                rating_delta_b=int(row[6]),
                played_at=datetime.fromisoformat(row[7]),
            ),
        )

    def record_match(self, record: MatchRecord) -> str:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO matches (
                        user_a_id, user_b_id, goals_a, goals_b,
                        rating_delta_a, rating_delta_b, played_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.user_a_id,
                        record.user_b_id,
                        record.goals_a,
                        record.goals_b,
                        record.rating_delta_a,
                        record.rating_delta_b,
                        record.played_at.isoformat(),
                    ),
                )
                conn.commit()
                return str(cur.lastrowid)
        except sqlite3.Error as exc:
            raise StoreError(f"Recording match failed: {exc}") from exc

    def get_matches_for_user(self, user_id: str, limit: int) -> List[StoredMatch]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, user_a_id, user_b_id, goals_a, goals_b,
                       rating_delta_a, rating_delta_b, played_at
                FROM matches
                WHERE user_a_id = ? OR user_b_id = ?
                ORDER BY id DESC
                LIMIT ?
                """,
                (user_id, user_id, limit),
            )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]
