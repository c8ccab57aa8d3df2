from infrastructure.config import Settings, build_repositories
from infrastructure.logging_config import setup_logging
from interfaces.telegram.handlers import create_telegram_bot


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    if not settings.telegram_token:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    repos = build_repositories(settings)

    bot = create_telegram_bot(settings.telegram_token, repos, settings.initial_rating)
    bot.infinity_polling()


if __name__ == "__main__":
    main()
