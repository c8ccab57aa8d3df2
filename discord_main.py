from infrastructure.config import Settings, build_repositories
from infrastructure.logging_config import setup_logging
from interfaces.discord.handlers import create_discord_bot


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    repos = build_repositories(settings)

    bot = create_discord_bot(repos, settings.initial_rating)
    # Logging is already configured; keep discord.py from installing its own handler.
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
