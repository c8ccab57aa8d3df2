from __future__ import annotations

import sqlite3
from typing import List, Optional

from domain.models import Card
from domain.repositories import CardRepository


class SqliteCardRepository(CardRepository):
    """
    SQLite-backed implementation of `CardRepository`.

    Owns the `base_cards` catalog table. Squad cards (per-user copies)
    live in the `cards` table managed by `SqliteSquadRepository`.
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
    def _to_domain(row: sqlite3.Row) -> Card:
        return Card(
            id=str(row[0]),
            name=row[1],
            shoot=int(row[2]),
            passing=int(row[3]),
            defense=int(row[4]),
        )

    def get_base_card(self, card_id: str) -> Optional[Card]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT id, name, shoot, pass, defense FROM base_cards WHERE id = ?",
                (card_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def list_base_cards(self) -> List[Card]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT id, name, shoot, pass, defense FROM base_cards")
            return [self._to_domain(row) for row in cur.fetchall()]

    def add_base_cards(self, cards: List[Card]) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.executemany(
                """
                INSERT OR IGNORE INTO base_cards (id, name, shoot, pass, defense)
                VALUES (?, ?, ?, ?, ?)
                """,
                [(c.id, c.name, c.shoot, c.passing, c.defense) for c in cards],
            )
            conn.commit()
