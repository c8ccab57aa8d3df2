from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import List, Optional

from domain.exceptions import (
    CardNotFound,
    InvalidSquad,
    NoOpponentFound,
    StoreError,
    SupportAlreadyUsed,
    UserNotFound,
)
from domain.models import (
    POSITIONS,
    AggregateStats,
    Card,
    MatchRecord,
    RankingEntry,
    RankingPage,
    Squad,
    StoredMatch,
    User,
)
from domain.repositories import (
    CardRepository,
    MatchLogRepository,
    RatingStore,
    SquadRepository,
    UserRepository,
)
from domain.simulation import (
    DEFAULT_BASE_ATTACKS,
    DEFAULT_EXTRA_ATTACKS,
    DEFAULT_LOSE_DELTA,
    DEFAULT_WIN_DELTA,
    RandomSource,
    allocate_attacks,
    rating_deltas,
    simulate_goals,
)

logger = logging.getLogger(__name__)

DEFAULT_RANKINGS_PAGE = 1
DEFAULT_RANKINGS_LIMIT = 10

SUPPORT_BOOST = 2

# The stat each position feeds into `Squad.aggregate_stats`.
_SUPPORTED_STAT = {"FW": "shoot", "MF": "passing", "DF": "defense"}

_default_rng = random.Random()


@dataclass
class ExternalContext:
    """
    Information about the caller from a particular channel (Telegram, Discord, web).

    The application layer never depends on concrete SDK types; it only sees
    this small context object.
    """

    provider: str
    provider_user_id: str
    display_name: str

    @property
    def user_id(self) -> str:
        return f"{self.provider}:{self.provider_user_id}"


@dataclass(frozen=True)
class MatchSettings:
    """Tunables for match resolution and matchmaking."""

    base_attacks: int = DEFAULT_BASE_ATTACKS
    extra_attacks: int = DEFAULT_EXTRA_ATTACKS
    win_delta: int = DEFAULT_WIN_DELTA
    lose_delta: int = DEFAULT_LOSE_DELTA
    initial_radius: int = 10
    radius_step: int = 10
    max_radius: int = 100


DEFAULT_MATCH_SETTINGS = MatchSettings()


def register_user(
    external_ctx: ExternalContext,
    user_repo: UserRepository,
    initial_rating: int,
) -> User:
    """Return the user bound to this chat identity, creating it on first use."""

    existing = user_repo.get_user(external_ctx.user_id)
    if existing is not None:
        return existing

    user = User(
        id=external_ctx.user_id,
        nickname=external_ctx.display_name,
        cash=0,
        rating=initial_rating,
    )
    user_repo.add_user(user)
    logger.info("Registered user %s (rating %d)", user.id, user.rating)

    stored_user = user_repo.get_user(user.id)
    return stored_user or user


def get_aggregate_stats(
    user_id: str,
    user_repo: UserRepository,
    squad_repo: SquadRepository,
) -> AggregateStats:
    """
    Read a user's squad and reduce it to the three match strengths.

    A user without a squad plays with zero strength everywhere.
    """

    if user_repo.get_user(user_id) is None:
        raise UserNotFound(user_id)

    squad = squad_repo.get_squad(user_id)
    if squad is None:
        return AggregateStats()
    return squad.aggregate_stats()


def get_squad(
    user_id: str,
    user_repo: UserRepository,
    squad_repo: SquadRepository,
) -> Squad:
    """Return the user's squad; a user who never picked one has an empty squad."""

    if user_repo.get_user(user_id) is None:
        raise UserNotFound(user_id)

    return squad_repo.get_squad(user_id) or Squad(user_id=user_id)


def list_cards(card_repo: CardRepository) -> List[Card]:
    return sorted(card_repo.list_base_cards(), key=lambda c: (len(c.id), c.id))


def set_squad(
    user_id: str,
    attacker_id: str,
    midfielder_id: str,
    defender_id: str,
    user_repo: UserRepository,
    squad_repo: SquadRepository,
    card_repo: CardRepository,
) -> Squad:
    """
    Fill all three slots from the card catalog.

    Each slot gets the user's own copy of the catalog card (ID
    `{user_id}/{card_id}`). A card already in the squad keeps its current
    stats, so a support boost survives moving it between slots. The
    `support_used` flag is carried over.
    """

    card_ids = [attacker_id, midfielder_id, defender_id]
    if len(set(card_ids)) != len(card_ids):
        raise InvalidSquad("The same card cannot fill two positions.")

    current = get_squad(user_id, user_repo, squad_repo)

    templates = {card_id: card_repo.get_base_card(card_id) for card_id in card_ids}
    missing = [card_id for card_id, card in templates.items() if card is None]
    if missing:
        raise CardNotFound(missing)

    owned = {
        card.id: card
        for card in (current.attacker, current.midfielder, current.defender)
        if card is not None
    }

    def _owned_copy(card_id: str) -> Card:
        owned_id = f"{user_id}/{card_id}"
        return owned.get(owned_id) or replace(templates[card_id], id=owned_id)

    squad = Squad(
        user_id=user_id,
        attacker=_owned_copy(attacker_id),
        midfielder=_owned_copy(midfielder_id),
        defender=_owned_copy(defender_id),
        support_used=current.support_used,
    )
    squad_repo.save_squad(squad)
    logger.info("Squad of %s set to %s", user_id, ", ".join(card_ids))
    return squad


def support_position(
    user_id: str,
    position: str,
    user_repo: UserRepository,
    squad_repo: SquadRepository,
) -> Squad:
    """
    Boost the stat a position contributes (FW shoot, MF pass, DF defense)
    by `SUPPORT_BOOST`. Allowed once per squad.
    """

    position = position.upper()
    if position not in POSITIONS:
        raise InvalidSquad(f"Unknown position: {position}. Use FW, MF or DF.")

    squad = get_squad(user_id, user_repo, squad_repo)
    if squad.support_used:
        raise SupportAlreadyUsed(user_id)

    card = squad.card_at(position)
    if card is None:
        raise InvalidSquad(f"No card in the {position} slot.")

    stat = _SUPPORTED_STAT[position]
    boosted = replace(card, **{stat: getattr(card, stat) + SUPPORT_BOOST})
    squad = replace(squad.with_card(position, boosted), support_used=True)
    squad_repo.save_squad(squad)
    logger.info("Support %s for %s: %s +%d", position, user_id, stat, SUPPORT_BOOST)
    return squad


def apply_rating_deltas(
    user_a_id: str,
    delta_a: int,
    user_b_id: str,
    delta_b: int,
    rating_store: RatingStore,
) -> None:
    """
    Apply both rating deltas or neither.

    If the second update fails, the first is rolled back by applying its
    negated delta (itself an atomic increment) and `StoreError` is raised.
    """

    if delta_a == 0 and delta_b == 0:
        return

    rating_store.apply_rating_delta(user_a_id, delta_a)
    try:
        rating_store.apply_rating_delta(user_b_id, delta_b)
    except Exception as exc:
        logger.warning(
            "Rating update for %s failed; reverting %+d on %s",
            user_b_id,
            delta_a,
            user_a_id,
        )
        try:
            rating_store.apply_rating_delta(user_a_id, -delta_a)
        except Exception:
            logger.exception(
                "Reverting %+d on %s failed; its rating is left inconsistent",
                delta_a,
                user_a_id,
            )
            raise StoreError(
                f"Rating of {user_a_id} left inconsistent", user_id=user_a_id
            ) from exc
        if isinstance(exc, StoreError):
            raise
        raise StoreError(
            f"Rating update failed for {user_b_id}", user_id=user_b_id
        ) from exc


def resolve_match(
    user_a_id: str,
    user_b_id: str,
    user_repo: UserRepository,
    squad_repo: SquadRepository,
    rating_store: RatingStore,
    match_repo: MatchLogRepository,
    rng: Optional[RandomSource] = None,
    settings: MatchSettings = DEFAULT_MATCH_SETTINGS,
) -> MatchRecord:
    """
    Play one match between two users and persist the outcome.

    Steps, strictly in order:
    - Aggregate both squads (nothing is written if either user is missing).
    - Allocate attacks by midfield strength, then simulate goals.
    - Apply both rating deltas.
    - Record the match. If that write fails, the rating deltas are reverted
      so a rating change never exists without its match record.
    """

    rng = rng or _default_rng

    stats_a = get_aggregate_stats(user_a_id, user_repo, squad_repo)
    stats_b = get_aggregate_stats(user_b_id, user_repo, squad_repo)

    allocation = allocate_attacks(
        stats_a.pass_strength,
        stats_b.pass_strength,
        rng,
        base_attacks=settings.base_attacks,
        extra_attacks=settings.extra_attacks,
    )
    tally = simulate_goals(
        allocation,
        shoot_a=stats_a.shoot_strength,
        defense_a=stats_a.defense_strength,
        shoot_b=stats_b.shoot_strength,
        defense_b=stats_b.defense_strength,
        rng=rng,
    )
    delta_a, delta_b = rating_deltas(
        tally.goals_a,
        tally.goals_b,
        win_delta=settings.win_delta,
        lose_delta=settings.lose_delta,
    )

    record = MatchRecord(
        user_a_id=user_a_id,
        user_b_id=user_b_id,
        goals_a=tally.goals_a,
        goals_b=tally.goals_b,
        rating_delta_a=delta_a,
        rating_delta_b=delta_b,
    )

    apply_rating_deltas(user_a_id, delta_a, user_b_id, delta_b, rating_store)
    try:
        record_id = match_repo.record_match(record)
    except Exception as exc:
        logger.warning(
            "Recording match %s vs %s failed; reverting rating deltas",
            user_a_id,
            user_b_id,
        )
        try:
            apply_rating_deltas(user_a_id, -delta_a, user_b_id, -delta_b, rating_store)
        except StoreError:
            logger.exception(
                "Reverting ratings of %s and %s failed; they are left changed "
                "without a match record",
                user_a_id,
                user_b_id,
            )
            raise
        if isinstance(exc, StoreError):
            raise
        raise StoreError("Recording match failed") from exc

    logger.info(
        "Match %s: %s %d - %d %s (attacks %d/%d, rating %+d/%+d)",
        record_id,
        user_a_id,
        record.goals_a,
        record.goals_b,
        user_b_id,
        allocation.attacks_a,
        allocation.attacks_b,
        delta_a,
        delta_b,
    )
    return record


def find_opponent(
    user_id: str,
    user_repo: UserRepository,
    rng: Optional[RandomSource] = None,
    settings: MatchSettings = DEFAULT_MATCH_SETTINGS,
) -> User:
    """
    Pick a random opponent within an expanding rating window.

    The window starts at `initial_radius` and widens by `radius_step` until
    a candidate appears or `max_radius` is exceeded. The requester is never
    a candidate.
    """

    rng = rng or _default_rng

    user = user_repo.get_user(user_id)
    if user is None:
        raise UserNotFound(user_id)

    radius = settings.initial_radius
    while radius <= settings.max_radius:
        candidates = [
            candidate
            for candidate in user_repo.find_users_in_rating_range(
                user.rating, radius, user_id
            )
            if candidate.id != user_id
        ]
        logger.debug(
            "Matchmaking %s: radius %d -> %d candidate(s)",
            user_id,
            radius,
            len(candidates),
        )
        if candidates:
            index = min(int(rng.random() * len(candidates)), len(candidates) - 1)
            return candidates[index]
        radius += settings.radius_step

    raise NoOpponentFound(user_id, settings.max_radius)


def matchmake_and_resolve(
    user_id: str,
    user_repo: UserRepository,
    squad_repo: SquadRepository,
    rating_store: RatingStore,
    match_repo: MatchLogRepository,
    rng: Optional[RandomSource] = None,
    settings: MatchSettings = DEFAULT_MATCH_SETTINGS,
) -> MatchRecord:
    """Find an opponent for `user_id` and play the match against them."""

    opponent = find_opponent(user_id, user_repo, rng=rng, settings=settings)
    return resolve_match(
        user_id,
        opponent.id,
        user_repo,
        squad_repo,
        rating_store,
        match_repo,
        rng=rng,
        settings=settings,
    )


def get_rankings(
    page: int,
    limit: int,
    user_repo: UserRepository,
) -> RankingPage:
    """Return one leaderboard page, highest rating first. Rankings are 1-based."""

    if page < 1:
        page = DEFAULT_RANKINGS_PAGE
    if limit < 1:
        limit = DEFAULT_RANKINGS_LIMIT

    total_users = user_repo.count_users()
    offset = (page - 1) * limit
    users = user_repo.list_users_by_rating(offset, limit)

    entries = [
        RankingEntry(ranking=offset + index + 1, name=u.nickname, rating=u.rating)
        for index, u in enumerate(users)
    ]
    return RankingPage(
        total_users=total_users,
        total_pages=math.ceil(total_users / limit),
        entries=entries,
    )


def get_match_history(
    user_id: str,
    match_repo: MatchLogRepository,
    limit: int = 10,
) -> List[StoredMatch]:
    return match_repo.get_matches_for_user(user_id, limit)
