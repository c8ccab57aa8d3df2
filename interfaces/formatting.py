from __future__ import annotations

from typing import List, Optional

from domain.models import (
    POSITIONS,
    Card,
    MatchRecord,
    RankingPage,
    Squad,
    StoredMatch,
    User,
)
from domain.repositories import UserRepository


def _display_name(user_id: str, user_repo: UserRepository) -> str:
    user = user_repo.get_user(user_id)
    return user.nickname if user is not None else user_id


def format_match_result(record: MatchRecord, user_repo: UserRepository) -> str:
    name_a = _display_name(record.user_a_id, user_repo)
    name_b = _display_name(record.user_b_id, user_repo)

    lines = [f"{name_a} {record.goals_a} - {record.goals_b} {name_b}"]
    if record.is_draw:
        lines.append("Draw! Ratings unchanged.")
    else:
        winner = name_a if record.winner_id == record.user_a_id else name_b
        lines.append(f"{winner} wins!")
        lines.append(
            f"Rating: {name_a} {record.rating_delta_a:+d}, "
            f"{name_b} {record.rating_delta_b:+d}"
        )
    return "\n".join(lines)


def format_rating(user: User) -> str:
    return f"{user.nickname}: rating {user.rating}"


def format_rankings(page: RankingPage, page_number: int) -> str:
    if not page.entries:
        return "No ranked players on this page."

    lines = [f"Rankings (page {page_number}/{max(page.total_pages, 1)})"]
    lines.extend(f"{e.ranking}. {e.name} - {e.rating}" for e in page.entries)
    return "\n".join(lines)


def format_history(user_id: str, matches: List[StoredMatch], user_repo: UserRepository) -> str:
    if not matches:
        return "No matches played yet."

    lines = []
    for stored in matches:
        record = stored.record
        if record.user_a_id == user_id:
            mine, theirs, delta, opponent_id = (
                record.goals_a,
                record.goals_b,
                record.rating_delta_a,
                record.user_b_id,
            )
        else:
            mine, theirs, delta, opponent_id = (
                record.goals_b,
                record.goals_a,
                record.rating_delta_b,
                record.user_a_id,
            )
        opponent = _display_name(opponent_id, user_repo)
        lines.append(f"vs {opponent}: {mine} - {theirs} ({delta:+d})")
    return "\n".join(lines)


def _format_card(card: Optional[Card]) -> str:
    if card is None:
        return "(empty)"
    return f"{card.name} (shoot {card.shoot}, pass {card.passing}, defense {card.defense})"


def format_squad(squad: Squad) -> str:
    lines = [f"{position}: {_format_card(squad.card_at(position))}" for position in POSITIONS]
    lines.append("Support: used" if squad.support_used else "Support: available")
    return "\n".join(lines)


def format_cards(cards: List[Card]) -> str:
    if not cards:
        return "The card catalog is empty."
    return "\n".join(f"{card.id}. {_format_card(card)}" for card in cards)
