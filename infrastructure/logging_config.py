"""Logging configuration for the bot processes."""

import logging
from typing import Union


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Attach a single console handler to the root logger.

    Existing root handlers are cleared first so that calling this more than
    once does not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(console)

    # discord.py and telebot are chatty at DEBUG.
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("TeleBot").setLevel(logging.WARNING)
