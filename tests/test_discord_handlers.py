import unittest
from types import SimpleNamespace

from discord.ext import commands

from infrastructure.config import Repositories
from infrastructure.seed import STARTER_CARDS
from interfaces.discord.handlers import create_discord_bot
from tests.fakes import (
    InMemoryCardRepository,
    InMemoryMatchRepository,
    InMemorySquadRepository,
    InMemoryUserRepository,
)


class FakeContext:
    def __init__(self, author):
        self.author = author
        self.sent = []

    async def send(self, content):
        self.sent.append(content)


def _member(member_id, name):
    return SimpleNamespace(id=member_id, name=name.lower(), display_name=name)


class DiscordHandlersTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        users = InMemoryUserRepository()
        self.repos = Repositories(
            users=users,
            ratings=users,
            squads=InMemorySquadRepository(),
            cards=InMemoryCardRepository(STARTER_CARDS),
            matches=InMemoryMatchRepository(),
        )
        self.bot = create_discord_bot(self.repos, initial_rating=1000)
        self.ctx = FakeContext(_member(7, "Alice"))

    async def test_rankings_with_non_numeric_page(self):
        on_error = self.bot.get_command("rankings").on_error

        await on_error(self.ctx, commands.BadArgument('Converting to "int" failed'))

        self.assertEqual(self.ctx.sent, ["Page must be a number."])

    async def test_rankings_error_handler_reraises_other_errors(self):
        on_error = self.bot.get_command("rankings").on_error

        with self.assertRaises(commands.CommandError):
            await on_error(self.ctx, commands.CommandError("boom"))
        self.assertEqual(self.ctx.sent, [])

    async def test_squad_set_and_show(self):
        await self.bot.get_command("squad set").callback(self.ctx, "1", "5", "9")
        self.assertIn("FW: Striker", self.ctx.sent[-1])

        await self.bot.get_command("squad").callback(self.ctx)
        self.assertIn("MF: Playmaker", self.ctx.sent[-1])
        self.assertEqual(self.repos.squads.get_squad("discord:7").attacker.id, "discord:7/1")

    async def test_squad_set_reports_unknown_card(self):
        await self.bot.get_command("squad set").callback(self.ctx, "1", "5", "42")

        self.assertEqual(self.ctx.sent, ["Card not found: 42"])
        self.assertIsNone(self.repos.squads.get_squad("discord:7"))

    async def test_support_once(self):
        await self.bot.get_command("squad set").callback(self.ctx, "1", "5", "9")
        support = self.bot.get_command("support").callback

        await support(self.ctx, "df")
        self.assertIn("defense 11", self.ctx.sent[-1])

        await support(self.ctx, "fw")
        self.assertEqual(self.ctx.sent[-1], "Support has already been used for this squad.")

    async def test_cards_lists_catalog(self):
        await self.bot.get_command("cards").callback(self.ctx)

        self.assertIn("5. Playmaker", self.ctx.sent[-1])


if __name__ == "__main__":
    unittest.main()
