import math
import random
import unittest

from domain.models import Card, Squad
from domain.simulation import (
    AttackAllocation,
    allocate_attacks,
    rating_deltas,
    simulate_goals,
    win_probability,
)
from tests.fakes import ConstantRandom


class WinProbabilityTests(unittest.TestCase):
    def test_quadratic_weighting(self):
        self.assertAlmostEqual(win_probability(3, 4), 9 / 25)
        self.assertAlmostEqual(win_probability(5, 5), 0.5)

    def test_both_zero_is_zero_not_nan(self):
        p = win_probability(0, 0)
        self.assertEqual(p, 0.0)
        self.assertFalse(math.isnan(p))

    def test_one_sided(self):
        self.assertEqual(win_probability(10, 0), 1.0)
        self.assertEqual(win_probability(0, 10), 0.0)


class AllocateAttacksTests(unittest.TestCase):
    def test_total_is_conserved(self):
        rng = random.Random(1234)
        for pass_a, pass_b in [(0, 0), (1, 99), (50, 50), (7, 3), (100, 0)]:
            for _ in range(50):
                allocation = allocate_attacks(pass_a, pass_b, rng)
                self.assertEqual(allocation.attacks_a + allocation.attacks_b, 20)
                self.assertGreaterEqual(allocation.attacks_a, 5)
                self.assertGreaterEqual(allocation.attacks_b, 5)

    def test_custom_base_and_extra(self):
        allocation = allocate_attacks(4, 6, random.Random(7), base_attacks=2, extra_attacks=3)
        self.assertEqual(allocation.attacks_a + allocation.attacks_b, 7)

    def test_dominant_midfield_takes_every_round(self):
        allocation = allocate_attacks(10, 0, random.Random(99))
        self.assertEqual(allocation, AttackAllocation(attacks_a=15, attacks_b=5))

    def test_zero_midfields_give_every_round_to_b(self):
        allocation = allocate_attacks(0, 0, ConstantRandom(0.0))
        self.assertEqual(allocation, AttackAllocation(attacks_a=5, attacks_b=15))

    def test_one_draw_per_contested_round(self):
        rng = ConstantRandom(0.5)
        allocate_attacks(3, 3, rng, extra_attacks=10)
        self.assertEqual(rng.draws, 10)

    def test_stronger_midfield_never_lowers_expected_attacks(self):
        rng = random.Random(2024)
        trials = 2000
        means = []
        for pass_a in (0, 1, 3, 5, 10, 20):
            total = sum(allocate_attacks(pass_a, 5, rng).attacks_a for _ in range(trials))
            means.append(total / trials)

        for lower, higher in zip(means, means[1:]):
            self.assertGreaterEqual(higher + 0.1, lower)
        self.assertAlmostEqual(means[3], 10.0, delta=0.3)


class SimulateGoalsTests(unittest.TestCase):
    def test_zero_shoot_never_scores(self):
        tally = simulate_goals(
            AttackAllocation(attacks_a=15, attacks_b=5),
            shoot_a=0,
            defense_a=3,
            shoot_b=4,
            defense_b=10,
            rng=random.Random(5),
        )
        self.assertEqual(tally.goals_a, 0)
        self.assertLessEqual(tally.goals_b, 5)

    def test_zero_shoot_and_zero_defense_never_scores(self):
        tally = simulate_goals(
            AttackAllocation(attacks_a=10, attacks_b=10),
            shoot_a=0,
            defense_a=0,
            shoot_b=0,
            defense_b=0,
            rng=ConstantRandom(0.0),
        )
        self.assertEqual((tally.goals_a, tally.goals_b), (0, 0))

    def test_unopposed_attack_always_scores(self):
        tally = simulate_goals(
            AttackAllocation(attacks_a=7, attacks_b=13),
            shoot_a=8,
            defense_a=0,
            shoot_b=8,
            defense_b=0,
            rng=ConstantRandom(0.999),
        )
        self.assertEqual((tally.goals_a, tally.goals_b), (7, 13))

    def test_goals_track_probability(self):
        rng = random.Random(42)
        trials = 1000
        allocation = AttackAllocation(attacks_a=10, attacks_b=10)
        total = sum(
            simulate_goals(allocation, 3, 0, 0, 4, rng).goals_a for _ in range(trials)
        )
        # p = 9 / 25 -> 3.6 goals per match
        self.assertAlmostEqual(total / trials, 3.6, delta=0.2)

    def test_fully_deterministic_scenario(self):
        attacker = Squad(
            user_id="a",
            attacker=Card("fw", "Striker", shoot=0, passing=0, defense=0),
            midfielder=Card("mf", "Playmaker", shoot=0, passing=10, defense=0),
        )
        stats = attacker.aggregate_stats()
        allocation = allocate_attacks(stats.pass_strength, 0, random.Random(3))
        self.assertEqual(allocation, AttackAllocation(attacks_a=15, attacks_b=5))

        for seed in range(20):
            tally = simulate_goals(
                allocation,
                shoot_a=stats.shoot_strength,
                defense_a=stats.defense_strength,
                shoot_b=6,
                defense_b=10,
                rng=random.Random(seed),
            )
            self.assertEqual(tally.goals_a, 0)


class RatingDeltaTests(unittest.TestCase):
    def test_decisive_results(self):
        self.assertEqual(rating_deltas(3, 1), (10, -10))
        self.assertEqual(rating_deltas(0, 2), (-10, 10))

    def test_draw_leaves_ratings_unchanged(self):
        self.assertEqual(rating_deltas(2, 2), (0, 0))
        self.assertEqual(rating_deltas(0, 0), (0, 0))

    def test_custom_magnitudes(self):
        self.assertEqual(rating_deltas(1, 0, win_delta=15, lose_delta=-5), (15, -5))


class SquadAggregateTests(unittest.TestCase):
    def test_each_slot_contributes_one_stat(self):
        squad = Squad(
            user_id="u",
            attacker=Card("1", "FW", shoot=9, passing=1, defense=1),
            midfielder=Card("2", "MF", shoot=1, passing=8, defense=1),
            defender=Card("3", "DF", shoot=1, passing=1, defense=7),
        )
        stats = squad.aggregate_stats()
        self.assertEqual(
            (stats.pass_strength, stats.shoot_strength, stats.defense_strength),
            (8, 9, 7),
        )

    def test_empty_slots_are_zero(self):
        stats = Squad(user_id="u").aggregate_stats()
        self.assertEqual(
            (stats.pass_strength, stats.shoot_strength, stats.defense_strength),
            (0, 0, 0),
        )


if __name__ == "__main__":
    unittest.main()
