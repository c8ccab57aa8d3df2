"""Exception hierarchy for the match engine.

Exception tree:
    MatchEngineError
    +-- UserNotFound        (participant id does not resolve to an account)
    +-- NoOpponentFound     (matchmaking exhausted its rating window)
    +-- StoreError          (persistence failure while writing match results)
    +-- CardNotFound        (card id not in the catalog)
    +-- InvalidSquad        (lineup or support request cannot be applied)
        +-- SupportAlreadyUsed
"""

from __future__ import annotations

from typing import Iterable, Optional


class MatchEngineError(Exception):
    """Base exception for all match engine errors."""


class UserNotFound(MatchEngineError):
    """The requested user does not exist. Not retried."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class NoOpponentFound(MatchEngineError):
    """
    No eligible opponent within the maximum matchmaking radius.

    This is a normal "no match right now" outcome, not an internal fault.
    """

    def __init__(self, user_id: str, max_radius: int) -> None:
        self.user_id = user_id
        self.max_radius = max_radius
        super().__init__(
            f"No opponent found for {user_id} within rating radius {max_radius}"
        )


class StoreError(MatchEngineError):
    """
    Persistence failure during a rating update or match-log write.

    Fatal for the current match resolution.
    """

    def __init__(self, message: str, *, user_id: Optional[str] = None) -> None:
        self.user_id = user_id
        super().__init__(message)


class CardNotFound(MatchEngineError):
    def __init__(self, card_ids: Iterable[str]) -> None:
        self.card_ids = list(card_ids)
        super().__init__(f"Card not found: {', '.join(self.card_ids)}")


class InvalidSquad(MatchEngineError):
    """The requested lineup change is not allowed (duplicate card, empty slot, ...)."""


class SupportAlreadyUsed(InvalidSquad):
    """A squad gets exactly one support boost."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__("Support has already been used for this squad.")
