import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import create_engine, pool

# backend/alembic/env.py -> parents[1] == backend/, which holds the aquora package
sys.path.append(str(Path(__file__).resolve().parents[1]))

import aquora.db.models  # noqa: F401, E402
from aquora.db.base import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    """DATABASE_URL wins over alembic.ini so the API and its migrations share one database.

    Settings are not used here: migrating must not require the auth secret.
    """
    return os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")


def configure_options(url: str) -> dict:
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        # SQLite cannot ALTER most constraints in place
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations() -> None:
    url = database_url()

    if context.is_offline_mode():
        context.configure(url=url, literal_binds=True, **configure_options(url))
        with context.begin_transaction():
            context.run_migrations()
        return

    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **configure_options(url))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


run_migrations()
