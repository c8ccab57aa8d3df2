from __future__ import annotations

import logging

import telebot
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

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
from infrastructure.config import Repositories
from interfaces.formatting import (
    format_cards,
    format_history,
    format_match_result,
    format_rankings,
    format_rating,
    format_squad,
)
from interfaces.telegram.callback_data import (
    encode_challenge,
    is_challenge,
    parse_challenge,
)

logger = logging.getLogger(__name__)

# How many nearby-rated players /challenge offers.
CHALLENGE_CHOICES = 8


def _build_external_context(from_user) -> ExternalContext:
    """Extract a channel-agnostic context object from a Telegram user."""

    name = " ".join(p for p in (from_user.first_name, from_user.last_name) if p)
    return ExternalContext(
        provider="telegram",
        provider_user_id=str(from_user.id),
        display_name=name or str(from_user.id),
    )


def create_telegram_bot(
    bot_token: str,
    repos: Repositories,
    initial_rating: int,
    match_settings: MatchSettings = DEFAULT_MATCH_SETTINGS,
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the application layer.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and mapping them to/from application services.
    """

    bot = telebot.TeleBot(bot_token)

    def _register(from_user):
        return register_user(
            _build_external_context(from_user), repos.users, initial_rating
        )

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        user = _register(message.from_user)
        bot.send_message(
            message.chat.id,
            f"Welcome, {user.nickname}! Your rating is {user.rating}.\n"
            "Pick a squad with /cards and /squad set, then /play or /challenge.\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        bot.send_message(
            message.chat.id,
            "/play               - play against a similarly rated opponent\n"
            "/challenge          - choose an opponent to play\n"
            "/rating             - show your rating\n"
            "/rankings [page]    - show the leaderboard\n"
            "/history            - show your recent matches\n"
            "/cards              - list the card catalog\n"
            "/squad              - show your squad\n"
            "/squad set FW MF DF - pick catalog cards for your squad\n"
            "/support FW|MF|DF   - boost one position once (+2)\n",
        )

    @bot.message_handler(commands=["rating"])
    def handle_rating(message):
        user = _register(message.from_user)
        bot.send_message(message.chat.id, format_rating(user))

    @bot.message_handler(commands=["rankings"])
    def handle_rankings(message):
        parts = message.text.split()
        try:
            page_number = int(parts[1]) if len(parts) > 1 else 1
        except ValueError:
            bot.send_message(message.chat.id, "Page must be a number.")
            return

        page = get_rankings(page_number, 10, repos.users)
        bot.send_message(message.chat.id, format_rankings(page, max(page_number, 1)))

    @bot.message_handler(commands=["cards"])
    def handle_cards(message):
        bot.send_message(message.chat.id, format_cards(list_cards(repos.cards)))

    @bot.message_handler(commands=["squad"])
    def handle_squad(message):
        """
        /squad            -> show the squad
        /squad set a b c  -> fill FW, MF and DF with catalog cards
        """

        user = _register(message.from_user)
        parts = message.text.split()
        if len(parts) == 1:
            squad = get_squad(user.id, repos.users, repos.squads)
            bot.send_message(message.chat.id, format_squad(squad))
            return

        if parts[1].lower() != "set" or len(parts) != 5:
            bot.send_message(message.chat.id, "Usage: /squad set FW MF DF")
            return

        try:
            squad = set_squad(
                user.id,
                parts[2],
                parts[3],
                parts[4],
                repos.users,
                repos.squads,
                repos.cards,
            )
        except MatchEngineError as exc:
            bot.send_message(message.chat.id, str(exc))
            return

        bot.send_message(message.chat.id, format_squad(squad))

    @bot.message_handler(commands=["support"])
    def handle_support(message):
        user = _register(message.from_user)
        parts = message.text.split()
        if len(parts) != 2:
            bot.send_message(message.chat.id, "Usage: /support FW|MF|DF")
            return

        try:
            squad = support_position(user.id, parts[1], repos.users, repos.squads)
        except InvalidSquad as exc:
            bot.send_message(message.chat.id, str(exc))
            return

        bot.send_message(message.chat.id, format_squad(squad))

    @bot.message_handler(commands=["history"])
    def handle_history(message):
        user = _register(message.from_user)
        matches = get_match_history(user.id, repos.matches)
        bot.send_message(
            message.chat.id, format_history(user.id, matches, repos.users)
        )

    @bot.message_handler(commands=["play"])
    def handle_play(message):
        user = _register(message.from_user)
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
            bot.send_message(
                message.chat.id, "No opponent found near your rating. Try again later."
            )
            return
        except MatchEngineError as exc:
            logger.exception("Match for %s failed", user.id)
            bot.send_message(message.chat.id, f"Match failed: {exc}")
            return

        bot.send_message(message.chat.id, format_match_result(record, repos.users))

    @bot.message_handler(commands=["challenge"])
    def handle_challenge(message):
        user = _register(message.from_user)
        candidates = repos.users.find_users_in_rating_range(
            user.rating, match_settings.max_radius, user.id
        )[:CHALLENGE_CHOICES]
        if not candidates:
            bot.send_message(message.chat.id, "No other players available to challenge.")
            return

        markup = InlineKeyboardMarkup(row_width=2)
        for candidate in candidates:
            markup.add(
                InlineKeyboardButton(
                    f"{candidate.nickname} ({candidate.rating})",
                    callback_data=encode_challenge(user.id, candidate.id),
                )
            )

        bot.send_message(
            message.chat.id,
            "Choose your opponent",
            reply_markup=markup,
        )

    @bot.callback_query_handler(func=lambda call: is_challenge(call.data))
    def handle_choice(call):
        """
        Play the match against the opponent picked from the keyboard.
        """

        try:
            challenger_id, opponent_id = parse_challenge(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        # Only the player who opened the keyboard may use it.
        if challenger_id != _build_external_context(call.from_user).user_id:
            bot.answer_callback_query(call.id, "This is not your challenge.")
            return

        try:
            record = resolve_match(
                challenger_id,
                opponent_id,
                repos.users,
                repos.squads,
                repos.ratings,
                repos.matches,
                settings=match_settings,
            )
            bot.send_message(call.message.chat.id, format_match_result(record, repos.users))
        except MatchEngineError as exc:
            logger.exception("Challenge %s vs %s failed", challenger_id, opponent_id)
            bot.send_message(call.message.chat.id, f"Match failed: {exc}")
        finally:
            bot.answer_callback_query(call.id)
            bot.delete_message(call.message.chat.id, call.message.id)

    return bot
