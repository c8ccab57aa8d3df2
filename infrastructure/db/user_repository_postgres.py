from __future__ import annotations

from typing import List, Optional

import psycopg2

from domain.exceptions import StoreError
from domain.models import User
from domain.repositories import RatingStore, UserRepository


class PostgresUserRepository(UserRepository, RatingStore):
    """
    Postgres-backed implementation of `UserRepository` and `RatingStore`.

    Rating changes are single `UPDATE ... RETURNING` statements, so
    concurrent matches involving the same user never lose an update.
    """

    _COLUMNS = "id, nickname, cash, rating"

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
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
    def _to_domain(row: tuple) -> User:
        return User(
            id=str(row[0]),
            nickname=row[1],
            cash=int(row[2]),
            rating=int(row[3]),
        )

    def get_user(self, user_id: str) -> Optional[User]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {self._COLUMNS} FROM users WHERE id = %s", (user_id,)
                )
                row = cur.fetchone()
                if not row:
                    return None
                return self._to_domain(row)

    def add_user(self, user: User) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO users (id, nickname, cash, rating)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
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
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT {self._COLUMNS}
                    FROM users
                    WHERE rating BETWEEN %s AND %s AND id <> %s
                    """,
                    (center - radius, center + radius, exclude_user_id),
                )
                return [self._to_domain(row) for row in cur.fetchall()]

    def count_users(self) -> int:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM users")
                return int(cur.fetchone()[0])

    def list_users_by_rating(self, offset: int, limit: int) -> List[User]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT {self._COLUMNS}
                    FROM users
                    ORDER BY rating DESC, id
                    LIMIT %s OFFSET %s
                    """,
                    (limit, offset),
                )
                return [self._to_domain(row) for row in cur.fetchall()]

    def apply_rating_delta(self, user_id: str, delta: int) -> int:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE users
                        SET rating = rating + %s
                        WHERE id = %s
                        RETURNING rating
                        """,
                        (delta, user_id),
                    )
                    row = cur.fetchone()
                    if row is None:
                        raise StoreError(
                            f"Cannot update rating of unknown user {user_id}",
                            user_id=user_id,
                        )
                    conn.commit()
                    return int(row[0])
        except psycopg2.Error as exc:
            raise StoreError(
                f"Rating update failed for {user_id}: {exc}", user_id=user_id
            ) from exc
