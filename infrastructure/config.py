from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from domain.repositories import (
    CardRepository,
    MatchLogRepository,
    RatingStore,
    SquadRepository,
    UserRepository,
)
from infrastructure.db.card_repository_sqlite import SqliteCardRepository
from infrastructure.db.match_repository_sqlite import SqliteMatchRepository
from infrastructure.db.squad_repository_sqlite import SqliteSquadRepository
from infrastructure.db.user_repository_sqlite import SqliteUserRepository
from infrastructure.seed import seed_base_cards


@dataclass
class Settings:
    """Runtime configuration, read from the environment (and `.env`)."""

    db_backend: str = "sqlite"
    db_path: str = "football.db"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "football"
    postgres_user: str = "postgres"
    postgres_password: str = ""
    discord_token: Optional[str] = None
    telegram_token: Optional[str] = None
    initial_rating: int = 1000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        return cls(
            db_backend=os.environ.get("DB_BACKEND", "sqlite").lower(),
            db_path=os.environ.get("DB_PATH", "football.db"),
            postgres_host=os.environ.get("POSTGRES_HOST", "localhost"),
            postgres_port=int(os.environ.get("POSTGRES_PORT", "5432")),
            postgres_db=os.environ.get("POSTGRES_DB", "football"),
            postgres_user=os.environ.get("POSTGRES_USER", "postgres"),
            postgres_password=os.environ.get("POSTGRES_PASSWORD", ""),
            discord_token=os.environ.get("DISCORD_TOKEN"),
            telegram_token=os.environ.get("TELEGRAM_TOKEN"),
            initial_rating=int(os.environ.get("INITIAL_RATING", "1000")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def postgres_params(self) -> dict:
        return {
            "host": self.postgres_host,
            "port": self.postgres_port,
            "dbname": self.postgres_db,
            "user": self.postgres_user,
            "password": self.postgres_password,
        }


@dataclass
class Repositories:
    users: UserRepository
    ratings: RatingStore
    squads: SquadRepository
    cards: CardRepository
    matches: MatchLogRepository


def build_repositories(settings: Settings) -> Repositories:
    """Instantiate the repository set for the configured backend."""

    if settings.db_backend == "postgres":
        # Imported lazily so SQLite deployments do not need a Postgres driver.
        from infrastructure.db.card_repository_postgres import PostgresCardRepository
        from infrastructure.db.match_repository_postgres import PostgresMatchRepository
        from infrastructure.db.squad_repository_postgres import PostgresSquadRepository
        from infrastructure.db.user_repository_postgres import PostgresUserRepository

        params = settings.postgres_params
        pg_users = PostgresUserRepository(params)
        repos = Repositories(
            users=pg_users,
            ratings=pg_users,
            squads=PostgresSquadRepository(params),
            cards=PostgresCardRepository(params),
            matches=PostgresMatchRepository(params),
        )
        seed_base_cards(repos.cards)
        return repos

    if settings.db_backend != "sqlite":
        raise ValueError(f"Unsupported DB_BACKEND: {settings.db_backend}")

    users = SqliteUserRepository(settings.db_path)
    repos = Repositories(
        users=users,
        ratings=users,
        squads=SqliteSquadRepository(settings.db_path),
        cards=SqliteCardRepository(settings.db_path),
        matches=SqliteMatchRepository(settings.db_path),
    )
    seed_base_cards(repos.cards)
    return repos
