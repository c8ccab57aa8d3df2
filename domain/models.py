from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional


@dataclass
class User:
    """
    Domain representation of a football manager (player account).

    This model is intentionally simple and independent of any
    particular transport (Telegram, Discord, web) or database schema.
    """

    id: str
    nickname: str
    cash: int
    rating: int


@dataclass(frozen=True)
class Card:
    """A player card. The match engine only reads its stats."""

    id: str
    name: str
    shoot: int
    passing: int
    defense: int


@dataclass(frozen=True)
class AggregateStats:
    """Per-match strengths derived from a squad; never persisted."""

    pass_strength: int = 0
    shoot_strength: int = 0
    defense_strength: int = 0


POSITIONS = ("FW", "MF", "DF")

_SLOT_BY_POSITION = {"FW": "attacker", "MF": "midfielder", "DF": "defender"}


@dataclass
class Squad:
    """
    A user's three-role lineup.

    Each slot holds at most one card. An empty slot is a normal state
    (cards not assigned yet) and contributes zero strength.
    """

    user_id: str
    attacker: Optional[Card] = None
    midfielder: Optional[Card] = None
    defender: Optional[Card] = None
    support_used: bool = False

    def card_at(self, position: str) -> Optional[Card]:
        """Return the card in the FW, MF or DF slot."""

        return getattr(self, _SLOT_BY_POSITION[position])

    def with_card(self, position: str, card: Optional[Card]) -> "Squad":
        return replace(self, **{_SLOT_BY_POSITION[position]: card})

    def aggregate_stats(self) -> AggregateStats:
        """
        Project each slot onto the one stat it contributes:
        midfielder -> pass, attacker -> shoot, defender -> defense.

        Empty slots default to 0.
        """

        return AggregateStats(
            pass_strength=self.midfielder.passing if self.midfielder is not None else 0,
            shoot_strength=self.attacker.shoot if self.attacker is not None else 0,
            defense_strength=self.defender.defense if self.defender is not None else 0,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MatchRecord:
    """Outcome of one resolved match. Immutable once built."""

    user_a_id: str
    user_b_id: str
    goals_a: int
    goals_b: int
    rating_delta_a: int
    rating_delta_b: int
    played_at: datetime = field(default_factory=_utcnow)

    @property
    def is_draw(self) -> bool:
        return self.goals_a == self.goals_b

    @property
    def winner_id(self) -> Optional[str]:
        if self.goals_a > self.goals_b:
            return self.user_a_id
        if self.goals_b > self.goals_a:
            return self.user_b_id
        return None


@dataclass(frozen=True)
class StoredMatch:
    """A match record as read back from the match log."""

    record_id: str
    record: MatchRecord


@dataclass
class RankingEntry:
    ranking: int
    name: str
    rating: int


@dataclass
class RankingPage:
    total_users: int
    total_pages: int
    entries: List[RankingEntry] = field(default_factory=list)
