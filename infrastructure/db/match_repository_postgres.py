from __future__ import annotations

from typing import List

import psycopg2

from domain.exceptions import StoreError
from domain.models import MatchRecord, StoredMatch
from domain.repositories import MatchLogRepository


class PostgresMatchRepository(MatchLogRepository):
    """Postgres-backed implementation of `MatchLogRepository`."""

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
                    CREATE TABLE IF NOT EXISTS matches (
                        id SERIAL PRIMARY KEY,
                        user_a_id TEXT NOT NULL,
                        user_b_id TEXT NOT NULL,
                        goals_a INTEGER NOT NULL,
                        goals_b INTEGER NOT NULL,
                        rating_delta_a INTEGER NOT NULL,
                        rating_delta_b INTEGER NOT NULL,
                        played_at TIMESTAMPTZ NOT NULL
                    )
                    """
                )
                conn.commit()

    def record_match(self, record: MatchRecord) -> str:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO matches (
                            user_a_id, user_b_id, goals_a, goals_b,
                            rating_delta_a, rating_delta_b, played_at
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        RETURNING id
                        """,
                        (
                            record.user_a_id,
                            record.user_b_id,
                            record.goals_a,
                            record.goals_b,
                            record.rating_delta_a,
                            record.rating_delta_b,
                            record.played_at,
                        ),
                    )
                    record_id = cur.fetchone()[0]
                    conn.commit()
                    return str(record_id)
        except psycopg2.Error as exc:
            raise StoreError(f"Recording match failed: {exc}") from exc

    def get_matches_for_user(self, user_id: str, limit: int) -> List[StoredMatch]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, user_a_id, user_b_id, goals_a, goals_b,
                           rating_delta_a, rating_delta_b, played_at
                    FROM matches
                    WHERE user_a_id = %s OR user_b_id = %s
                    ORDER BY id DESC
                    LIMIT %s
                    """,
                    (user_id, user_id, limit),
                )
                return [
                    StoredMatch(
                        record_id=str(row[0]),
                        record=MatchRecord(
                            user_a_id=row[1],
                            user_b_id=row[2],
                            goals_a=int(row[3]),
                            goals_b=int(row[4]),
                            rating_delta_a=int(row[5]),
                            rating_delta_b=int(row[6]),
                            played_at=row[7],
                        ),
                    )
                    for row in cur.fetchall()
                ]
