"""
Starter card catalog.
Idempotent: existing card IDs are left as they are.
"""
from __future__ import annotations

from typing import List

from domain.models import Card
from domain.repositories import CardRepository

STARTER_CARDS: List[Card] = [
    Card("1", "Striker", shoot=9, passing=4, defense=2),
    Card("2", "Poacher", shoot=8, passing=3, defense=1),
    Card("3", "Winger", shoot=7, passing=6, defense=3),
    Card("4", "False Nine", shoot=6, passing=7, defense=3),
    Card("5", "Playmaker", shoot=5, passing=9, defense=3),
    Card("6", "Box-to-Box", shoot=5, passing=7, defense=6),
    Card("7", "Regista", shoot=3, passing=8, defense=5),
    Card("8", "Holding Mid", shoot=2, passing=6, defense=7),
    Card("9", "Centre-Back", shoot=2, passing=4, defense=9),
    Card("10", "Sweeper", shoot=2, passing=6, defense=8),
    Card("11", "Full-Back", shoot=3, passing=5, defense=7),
    Card("12", "Stopper", shoot=1, passing=3, defense=8),
]


def seed_base_cards(card_repo: CardRepository) -> None:
    card_repo.add_base_cards(STARTER_CARDS)
