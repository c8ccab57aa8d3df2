"""
Pure match simulation: attack allocation, goal trials and rating deltas.

Nothing here touches storage. Randomness comes from an injected
`RandomSource` so callers (and tests) decide how draws are produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

DEFAULT_BASE_ATTACKS = 5
DEFAULT_EXTRA_ATTACKS = 10
DEFAULT_WIN_DELTA = 10
DEFAULT_LOSE_DELTA = -10


class RandomSource(Protocol):
    """Anything that draws a uniform float in [0, 1). `random.Random` fits."""

    def random(self) -> float:
        ...


@dataclass(frozen=True)
class AttackAllocation:
    attacks_a: int
    attacks_b: int


@dataclass(frozen=True)
class GoalTally:
    goals_a: int
    goals_b: int


def win_probability(strength: int, opposing: int) -> float:
    """
    Quadratic-weighted chance that `strength` beats `opposing`.

    Returns 0.0 when both strengths are zero.
    """

    denominator = strength**2 + opposing**2
    if denominator == 0:
        return 0.0
    return strength**2 / denominator


def allocate_attacks(
    pass_a: int,
    pass_b: int,
    rng: RandomSource,
    base_attacks: int = DEFAULT_BASE_ATTACKS,
    extra_attacks: int = DEFAULT_EXTRA_ATTACKS,
) -> AttackAllocation:
    """
    Split the contested attacks between two sides by midfield strength.

    Both sides get `base_attacks`. Each of the `extra_attacks` rounds goes
    to side A when a fresh draw falls below A's win probability, otherwise
    to side B, so the total is always `2 * base_attacks + extra_attacks`.
    """

    p = win_probability(pass_a, pass_b)
    won_a = 0
    for _ in range(extra_attacks):
        if rng.random() < p:
            won_a += 1

    return AttackAllocation(
        attacks_a=base_attacks + won_a,
        attacks_b=base_attacks + (extra_attacks - won_a),
    )


def _count_successes(trials: int, p: float, rng: RandomSource) -> int:
    return sum(1 for _ in range(trials) if rng.random() < p)


def simulate_goals(
    allocation: AttackAllocation,
    shoot_a: int,
    defense_a: int,
    shoot_b: int,
    defense_b: int,
    rng: RandomSource,
) -> GoalTally:
    """Run one scoring trial per allocated attack, A's attacks first."""

    goals_a = _count_successes(
        allocation.attacks_a, win_probability(shoot_a, defense_b), rng
    )
    goals_b = _count_successes(
        allocation.attacks_b, win_probability(shoot_b, defense_a), rng
    )
    return GoalTally(goals_a=goals_a, goals_b=goals_b)


def rating_deltas(
    goals_a: int,
    goals_b: int,
    win_delta: int = DEFAULT_WIN_DELTA,
    lose_delta: int = DEFAULT_LOSE_DELTA,
) -> Tuple[int, int]:
    """
    Return `(delta_a, delta_b)` for a final score.

    The side with strictly more goals gets `win_delta`, the other
    `lose_delta`. A draw leaves both ratings unchanged.
    """

    if goals_a > goals_b:
        return win_delta, lose_delta
    if goals_b > goals_a:
        return lose_delta, win_delta
    return 0, 0
