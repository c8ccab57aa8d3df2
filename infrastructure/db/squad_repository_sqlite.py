from __future__ import annotations

import sqlite3
from typing import Optional

from domain.models import Card, Squad
from domain.repositories import SquadRepository


class SqliteSquadRepository(SquadRepository):
    """
    SQLite-backed implementation of `SquadRepository`.

    Owns the `cards` and `squads` tables. Each squad row references up to
    three cards; a NULL reference is an empty slot.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_tables()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_tables(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS cards (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    shoot INTEGER NOT NULL DEFAULT 0,
                    pass INTEGER NOT NULL DEFAULT 0,
                    defense INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS squads (
                    user_id TEXT PRIMARY KEY,
                    attacker_id TEXT REFERENCES cards (id),
                    midfielder_id TEXT REFERENCES cards (id),
                    defender_id TEXT REFERENCES cards (id),
                    support_used INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.commit()

    @staticmethod
    def _card_from_columns(columns) -> Optional[Card]:
        # (id, name, shoot, pass, defense); id is NULL for an empty slot.
        if columns[0] is None:
            return None
        return Card(
            id=str(columns[0]),
            name=columns[1],
            shoot=int(columns[2]),
            passing=int(columns[3]),
            defense=int(columns[4]),
        )

    def get_squad(self, user_id: str) -> Optional[Squad]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT s.user_id, s.support_used,
                       fw.id, fw.name, fw.shoot, fw.pass, fw.defense,
                       mf.id, mf.name, mf.shoot, mf.pass, mf.defense,
                       df.id, df.name, df.shoot, df.pass, df.defense
                FROM squads s
                LEFT JOIN cards fw ON fw.id = s.attacker_id
                LEFT JOIN cards mf ON mf.id = s.midfielder_id
                LEFT JOIN cards df ON df.id = s.defender_id
                WHERE s.user_id = ?
                """,
                (user_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return Squad(
                user_id=str(row[0]),
                support_used=bool(row[1]),
                attacker=self._card_from_columns(row[2:7]),
                midfielder=self._card_from_columns(row[7:12]),
                defender=self._card_from_columns(row[12:17]),
            )

    def save_squad(self, squad: Squad) -> None:
        cards = [c for c in (squad.attacker, squad.midfielder, squad.defender) if c]
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.executemany(
                """
                INSERT INTO cards (id, name, shoot, pass, defense)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    name = excluded.name,
                    shoot = excluded.shoot,
                    pass = excluded.pass,
                    defense = excluded.defense
                """,
                [(c.id, c.name, c.shoot, c.passing, c.defense) for c in cards],
            )
            cur.execute(
                """
                INSERT INTO squads (user_id, attacker_id, midfielder_id, defender_id, support_used)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    attacker_id = excluded.attacker_id,
                    midfielder_id = excluded.midfielder_id,
                    defender_id = excluded.defender_id,
                    support_used = excluded.support_used
                """,
                (
                    squad.user_id,
                    squad.attacker.id if squad.attacker else None,
                    squad.midfielder.id if squad.midfielder else None,
                    squad.defender.id if squad.defender else None,
                    int(squad.support_used),
                ),
            )
            conn.commit()
