from __future__ import annotations

import logging

import discord
from discord.ext import commands

from application.services import (
    DEFAULT_MATCH_SETTINGS,
    ExternalContext,
    MatchSettings,
    get_match_history,
    get_rankings,
    get_squad,
    list_cards,
    matchmake_and_resolve,
    register_user,
    resolve_match,
    set_squad,
    support_position,
)
from domain.exceptions import InvalidSquad, MatchEngineError, NoOpponentFound
from domain.models import User
from infrastructure.config import Repositories
from interfaces.formatting import (
    format_cards,
    format_history,
    format_match_result,
    format_rankings,
    format_rating,
    format_squad,
)

logger = logging.getLogger(__name__)


def _build_external_context(user: discord.abc.User) -> ExternalContext:
    """Create an `ExternalContext` from a Discord user."""

    return ExternalContext(
        provider="discord",
        provider_user_id=str(user.id),
        display_name=user.display_name or user.name,
    )


def create_discord_bot(
    repos: Repositories,
    initial_rating: int,
    match_settings: MatchSettings = DEFAULT_MATCH_SETTINGS,
) -> commands.Bot:
    """
    Configure and return a Discord bot with behaviour analogous to
    the Telegram interface: squads, play, challenge, rating, rankings and history.
    """

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    def _register(member: discord.abc.User) -> User:
        return register_user(
            _build_external_context(member), repos.users, initial_rating
        )

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        user = _register(ctx.author)
        await ctx.send(
            f"Welcome, {user.nickname}! Your rating is {user.rating}.\n"
            "Pick a squad with !cards and !squad set, then !play or !challenge @player.\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!play                 - play against a similarly rated opponent\n"
            "!challenge @player    - play against a specific player\n"
            "!rating               - show your rating\n"
            "!rankings [page]      - show the leaderboard\n"
            "!history              - show your recent matches\n"
            "!cards                - list the card catalog\n"
            "!squad                - show your squad\n"
            "!squad set <fw> <mf> <df> - pick catalog cards for your squad\n"
            "!support <FW|MF|DF>   - boost one position once (+2)\n"
        )

    @bot.command(name="rating")
    async def rating_cmd(ctx: commands.Context):
        user = _register(ctx.author)
        await ctx.send(format_rating(user))

    @bot.command(name="rankings")
    async def rankings_cmd(ctx: commands.Context, page: int = 1):
        result = get_rankings(page, 10, repos.users)
        await ctx.send(format_rankings(result, max(page, 1)))

    @rankings_cmd.error
    async def rankings_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.BadArgument):
            await ctx.send("Page must be a number.")
            return
        raise error

    @bot.command(name="cards")
    async def cards_cmd(ctx: commands.Context):
        await ctx.send(format_cards(list_cards(repos.cards)))

    @bot.group(name="squad", invoke_without_command=True)
    async def squad_cmd(ctx: commands.Context):
        user = _register(ctx.author)
        squad = get_squad(user.id, repos.users, repos.squads)
        await ctx.send(format_squad(squad))

    @squad_cmd.command(name="set")
    async def squad_set_cmd(
        ctx: commands.Context,
        attacker_id: str,
        midfielder_id: str,
        defender_id: str,
    ):
        """
        !squad set <fw> <mf> <df> -> fill the squad with catalog cards
        """

        user = _register(ctx.author)
        try:
            squad = set_squad(
                user.id,
                attacker_id,
                midfielder_id,
                defender_id,
                repos.users,
                repos.squads,
                repos.cards,
            )
        except MatchEngineError as exc:
            await ctx.send(str(exc))
            return

        await ctx.send(format_squad(squad))

    @squad_set_cmd.error
    async def squad_set_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.send("Usage: !squad set <fw> <mf> <df>")
            return
        raise error

    @bot.command(name="support")
    async def support_cmd(ctx: commands.Context, position: str):
        user = _register(ctx.author)
        try:
            squad = support_position(user.id, position, repos.users, repos.squads)
        except InvalidSquad as exc:
            await ctx.send(str(exc))
            return

        await ctx.send(format_squad(squad))

    @bot.command(name="history")
    async def history_cmd(ctx: commands.Context):
        user = _register(ctx.author)
        matches = get_match_history(user.id, repos.matches)
        await ctx.send(format_history(user.id, matches, repos.users))

    @bot.command(name="play")
    async def play_cmd(ctx: commands.Context):
        user = _register(ctx.author)
        try:
            record = matchmake_and_resolve(
                user.id,
                repos.users,
                repos.squads,
                repos.ratings,
                repos.matches,
                settings=match_settings,
            )
        except NoOpponentFound:
            await ctx.send("No opponent found near your rating. Try again later.")
            return
        except MatchEngineError as exc:
            logger.exception("Match for %s failed", user.id)
            await ctx.send(f"Match failed: {exc}")
            return

        await ctx.send(format_match_result(record, repos.users))

    @bot.command(name="challenge")
    async def challenge_cmd(ctx: commands.Context, opponent: discord.Member):
        """
        !challenge @player -> play a match against that player right away
        """

        if opponent.id == ctx.author.id:
            await ctx.send("You cannot challenge yourself.")
            return

        challenger = _register(ctx.author)
        opponent_user = _register(opponent)

        try:
            record = resolve_match(
                challenger.id,
                opponent_user.id,
                repos.users,
                repos.squads,
                repos.ratings,
                repos.matches,
                settings=match_settings,
            )
        except MatchEngineError as exc:
            logger.exception("Challenge %s vs %s failed", challenger.id, opponent_user.id)
            await ctx.send(f"Match failed: {exc}")
            return

        await ctx.send(format_match_result(record, repos.users))

    return bot
