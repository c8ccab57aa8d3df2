from __future__ import annotations

import sqlite3
from typing import List, Optional

from domain.exceptions import StoreError
from domain.models import User
from domain.repositories import RatingStore, UserRepository


class SqliteUserRepository(UserRepository, RatingStore):
    """
    SQLite-backed implementation of `UserRepository` and `RatingStore`.

    This repository owns the `users` table and maps rows to the `User`
    domain model. It is self-initialising: the table is created if needed.
    """

    _COLUMNS = "id, nickname, cash, rating"

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
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    nickname TEXT NOT NULL,
                    cash INTEGER NOT NULL DEFAULT 0 CHECK (cash >= 0),
                    rating INTEGER NOT NULL
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_users_rating ON users (rating)"
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> User:
        return User(
            id=str(row[0]),
            nickname=row[1],
            cash=int(row[2]),
            rating=int(row[3]),
        )

    def get_user(self, user_id: str) -> Optional[User]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {self._COLUMNS} FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def add_user(self, user: User) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO users (id, nickname, cash, rating)
                VALUES (?, ?, ?, ?)
                """,
                (user.id, user.nickname, user.cash, user.rating),
            )
            conn.commit()

    def find_users_in_rating_range(
        self,
        center: int,
        radius: int,
        exclude_user_id: str,
    ) -> List[User]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT {self._COLUMNS}
                FROM users
                WHERE rating BETWEEN ? AND ? AND id != ?
                """,
                (center - radius, center + radius, exclude_user_id),
            )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]

    def count_users(self) -> int:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM users")
            return int(cur.fetchone()[0])

    def list_users_by_rating(self, offset: int, limit: int) -> List[User]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT {self._COLUMNS}
                FROM users
                ORDER BY rating DESC, id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]

    def apply_rating_delta(self, user_id: str, delta: int) -> int:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    UPDATE users
                    SET rating = rating + ?
                    WHERE id = ?
                    """,
                    (delta, user_id),
                )
                if cur.rowcount == 0:
                    raise StoreError(
                        f"Cannot update rating of unknown user {user_id}",
                        user_id=user_id,
                    )
                cur.execute("SELECT rating FROM users WHERE id = ?", (user_id,))
                new_rating = int(cur.fetchone()[0])
                conn.commit()
                return new_rating
        except sqlite3.Error as exc:
            raise StoreError(
                f"Rating update failed for {user_id}: {exc}", user_id=user_id
            ) from exc
