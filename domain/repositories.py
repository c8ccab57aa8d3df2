from __future__ import annotations

from typing import List, Optional, Protocol

from .models import Card, MatchRecord, Squad, StoredMatch, User


class UserRepository(Protocol):
    """
    Abstraction over user persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `User` domain model.
    - Hiding any SQL / driver details from the application layer.
    """

    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user with the given internal ID, or None if not found."""

        ...

    def add_user(self, user: User) -> None:
        """Persist a new user."""

        ...

    def find_users_in_rating_range(
        self,
        center: int,
        radius: int,
        exclude_user_id: str,
    ) -> List[User]:
        """
        Return every user whose rating lies in `[center - radius, center + radius]`,
        excluding `exclude_user_id`.

        The result carries no meaningful order.
        """

        ...

    def count_users(self) -> int:
        ...

    def list_users_by_rating(self, offset: int, limit: int) -> List[User]:
        """Return a slice of users ordered by rating, highest first."""

        ...


class RatingStore(Protocol):
    """
    Write side of the competitive rating.

    Usually implemented by the same class as `UserRepository`.
    """

    def apply_rating_delta(self, user_id: str, delta: int) -> int:
        """
        Adjust a user's rating by `delta` and return the new rating.

        Implementations must apply the delta atomically at the store
        (`rating = rating + delta`), never as a read-modify-write of a
        previously loaded value. Raises `StoreError` on failure.
        """

        ...


class SquadRepository(Protocol):
    """Read access to squads (and the cards in their slots)."""

    def get_squad(self, user_id: str) -> Optional[Squad]:
        """Return the user's squad, or None if none is configured."""

        ...

    def save_squad(self, squad: Squad) -> None:
        """Create or replace a squad. Cards in its slots are upserted."""

        ...


class CardRepository(Protocol):
    """
    Read access to the base card catalog.

    Catalog cards are templates; squads hold per-user copies of them.
    """

    def get_base_card(self, card_id: str) -> Optional[Card]:
        ...

    def list_base_cards(self) -> List[Card]:
        ...

    def add_base_cards(self, cards: List[Card]) -> None:
        """Insert catalog cards, leaving existing IDs untouched."""

        ...


class MatchLogRepository(Protocol):
    """Persistence for resolved matches."""

    def record_match(self, record: MatchRecord) -> str:
        """Persist `record` and return its record ID. Raises `StoreError`."""

        ...

    def get_matches_for_user(self, user_id: str, limit: int) -> List[StoredMatch]:
        """Return the most recent matches the user took part in, newest first."""

        ...
