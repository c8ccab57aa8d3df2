import os
import random
import tempfile
import unittest

from application.services import resolve_match, set_squad, support_position
from domain.exceptions import StoreError
from domain.models import Card, MatchRecord, Squad, User
from infrastructure.config import Settings, build_repositories
from infrastructure.db.card_repository_sqlite import SqliteCardRepository
from infrastructure.db.match_repository_sqlite import SqliteMatchRepository
from infrastructure.db.squad_repository_sqlite import SqliteSquadRepository
from infrastructure.db.user_repository_sqlite import SqliteUserRepository
from infrastructure.seed import STARTER_CARDS, seed_base_cards


class SqliteTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self._tmpdir.name, "football.db")

    def tearDown(self) -> None:
        self._tmpdir.cleanup()


class SqliteUserRepositoryTests(SqliteTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo = SqliteUserRepository(self.db_path)
        for user_id, rating in (("alice", 1000), ("bob", 1010), ("carol", 1011), ("dave", 990)):
            self.repo.add_user(User(id=user_id, nickname=user_id.title(), cash=0, rating=rating))

    def test_get_user(self):
        user = self.repo.get_user("alice")
        self.assertEqual(user, User(id="alice", nickname="Alice", cash=0, rating=1000))
        self.assertIsNone(self.repo.get_user("ghost"))

    def test_add_user_is_idempotent(self):
        self.repo.add_user(User(id="alice", nickname="Other", cash=5, rating=1))
        self.assertEqual(self.repo.get_user("alice").nickname, "Alice")
        self.assertEqual(self.repo.count_users(), 4)

    def test_apply_rating_delta_is_relative(self):
        self.assertEqual(self.repo.apply_rating_delta("alice", 10), 1010)
        self.assertEqual(self.repo.apply_rating_delta("alice", -25), 985)
        self.assertEqual(self.repo.get_user("alice").rating, 985)

    def test_apply_rating_delta_unknown_user(self):
        with self.assertRaises(StoreError):
            self.repo.apply_rating_delta("ghost", 10)

    def test_rating_range_is_inclusive_and_excludes_requester(self):
        found = self.repo.find_users_in_rating_range(1000, 10, "alice")
        self.assertEqual({u.id for u in found}, {"bob", "dave"})

    def test_list_users_by_rating(self):
        users = self.repo.list_users_by_rating(offset=1, limit=2)
        self.assertEqual([u.id for u in users], ["bob", "alice"])


class SqliteSquadRepositoryTests(SqliteTestCase):
    def test_missing_squad(self):
        repo = SqliteSquadRepository(self.db_path)
        self.assertIsNone(repo.get_squad("alice"))

    def test_round_trip_with_empty_slot(self):
        repo = SqliteSquadRepository(self.db_path)
        squad = Squad(
            user_id="alice",
            attacker=Card("c1", "Striker", shoot=9, passing=3, defense=1),
            defender=Card("c3", "Stopper", shoot=1, passing=2, defense=8),
            support_used=True,
        )
        repo.save_squad(squad)

        stored = repo.get_squad("alice")
        self.assertEqual(stored, squad)
        self.assertIsNone(stored.midfielder)
        self.assertEqual(stored.aggregate_stats().pass_strength, 0)

    def test_save_replaces_slots(self):
        repo = SqliteSquadRepository(self.db_path)
        repo.save_squad(Squad(user_id="alice", midfielder=Card("c2", "Mid", 1, 5, 1)))
        repo.save_squad(Squad(user_id="alice", midfielder=Card("c4", "Mid2", 1, 7, 1)))

        self.assertEqual(repo.get_squad("alice").midfielder.passing, 7)


class SqliteMatchRepositoryTests(SqliteTestCase):
    def test_record_and_history(self):
        repo = SqliteMatchRepository(self.db_path)
        first = MatchRecord("alice", "bob", 3, 1, 10, -10)
        second = MatchRecord("carol", "alice", 2, 2, 0, 0)
        third = MatchRecord("bob", "carol", 0, 1, -10, 10)

        ids = [repo.record_match(r) for r in (first, second, third)]
        self.assertEqual(len(set(ids)), 3)

        history = repo.get_matches_for_user("alice", limit=10)
        self.assertEqual([m.record_id for m in history], [ids[1], ids[0]])
        self.assertEqual(history[1].record, first)

        self.assertEqual(len(repo.get_matches_for_user("alice", limit=1)), 1)


class SqliteCardRepositoryTests(SqliteTestCase):
    def test_seeding_is_idempotent(self):
        repo = SqliteCardRepository(self.db_path)
        seed_base_cards(repo)
        repo.add_base_cards([Card("1", "Renamed", shoot=0, passing=0, defense=0)])
        seed_base_cards(repo)

        self.assertEqual(len(repo.list_base_cards()), len(STARTER_CARDS))
        self.assertEqual(repo.get_base_card("1"), STARTER_CARDS[0])
        self.assertIsNone(repo.get_base_card("99"))


class SqliteEndToEndTests(SqliteTestCase):
    def test_resolve_match_against_sqlite_backend(self):
        repos = build_repositories(Settings(db_backend="sqlite", db_path=self.db_path))
        repos.users.add_user(User(id="alice", nickname="Alice", cash=0, rating=1000))
        repos.users.add_user(User(id="bob", nickname="Bob", cash=0, rating=1000))
        repos.squads.save_squad(
            Squad(
                user_id="alice",
                attacker=Card("fw", "Striker", shoot=10, passing=0, defense=0),
                midfielder=Card("mf", "Mid", shoot=0, passing=10, defense=0),
            )
        )

        record = resolve_match(
            "alice",
            "bob",
            repos.users,
            repos.squads,
            repos.ratings,
            repos.matches,
            rng=random.Random(0),
        )

        self.assertEqual((record.goals_a, record.goals_b), (15, 0))
        self.assertEqual(repos.users.get_user("alice").rating, 1010)
        self.assertEqual(repos.users.get_user("bob").rating, 990)
        self.assertEqual(len(repos.matches.get_matches_for_user("bob", 10)), 1)

    def test_squad_from_catalog_plays_a_match(self):
        repos = build_repositories(Settings(db_backend="sqlite", db_path=self.db_path))
        for user_id in ("alice", "bob"):
            repos.users.add_user(User(id=user_id, nickname=user_id.title(), cash=0, rating=1000))
        set_squad("alice", "1", "5", "9", repos.users, repos.squads, repos.cards)
        set_squad("bob", "3", "6", "11", repos.users, repos.squads, repos.cards)
        support_position("alice", "FW", repos.users, repos.squads)

        squad = repos.squads.get_squad("alice")
        self.assertEqual(squad.attacker.id, "alice/1")
        self.assertEqual(squad.attacker.shoot, 11)
        self.assertTrue(squad.support_used)
        self.assertEqual(repos.cards.get_base_card("1").shoot, 9)

        record = resolve_match(
            "alice",
            "bob",
            repos.users,
            repos.squads,
            repos.ratings,
            repos.matches,
            rng=random.Random(5),
        )
        self.assertGreater(record.goals_a + record.goals_b, 0)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            build_repositories(Settings(db_backend="mongo", db_path=self.db_path))


if __name__ == "__main__":
    unittest.main()
