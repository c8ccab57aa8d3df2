from __future__ import annotations

from typing import List, Optional

import psycopg2

from domain.models import Card
from domain.repositories import CardRepository


class PostgresCardRepository(CardRepository):
    """Postgres-backed implementation of `CardRepository` (`base_cards` table)."""

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
                    CREATE TABLE IF NOT EXISTS base_cards (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        shoot INTEGER NOT NULL DEFAULT 0,
                        pass INTEGER NOT NULL DEFAULT 0,
                        defense INTEGER NOT NULL DEFAULT 0
                    )
                    """
                )
                conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> Card:
        return Card(
            id=str(row[0]),
            name=row[1],
            shoot=int(row[2]),
            passing=int(row[3]),
            defense=int(row[4]),
        )

    def get_base_card(self, card_id: str) -> Optional[Card]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT id, name, shoot, pass, defense FROM base_cards WHERE id = %s",
                    (card_id,),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return self._to_domain(row)

    def list_base_cards(self) -> List[Card]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT id, name, shoot, pass, defense FROM base_cards")
                return [self._to_domain(row) for row in cur.fetchall()]

    def add_base_cards(self, cards: List[Card]) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                for card in cards:
                    cur.execute(
                        """
                        INSERT INTO base_cards (id, name, shoot, pass, defense)
                        VALUES (%s, %s, %s, %s, %s)
                        ON CONFLICT (id) DO NOTHING
                        """,
                        (card.id, card.name, card.shoot, card.passing, card.defense),
                    )
                conn.commit()
