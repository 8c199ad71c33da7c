import io
from pathlib import Path

from alembic import command
from alembic.autogenerate import compare_metadata
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect

import aquora.db.models  # noqa: F401
from aquora.db.base import Base

BACKEND_DIR = Path(__file__).resolve().parents[1]

def _alembic_config() -> Config:
    # no ini file: keeps alembic's fileConfig away from the test loggers
    cfg = Config()
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    return cfg

def test_single_alembic_head():
    heads = ScriptDirectory.from_config(_alembic_config()).get_heads()
    assert len(heads) == 1, heads

def test_migrations_match_models(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)

    command.upgrade(_alembic_config(), "head")

    engine = create_engine(url)
    try:
        assert set(inspect(engine).get_table_names()) >= {
            "users",
            "refresh_tokens",
            "societies",
            "society_role_assignments",
        }
        with engine.connect() as conn:
            diff = compare_metadata(MigrationContext.configure(conn), Base.metadata)
        assert diff == []
    finally:
        engine.dispose()

    command.downgrade(_alembic_config(), "base")
    engine = create_engine(url)
    try:
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()


def test_offline_mode_renders_schema_sql(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    buffer = io.StringIO()
    cfg = Config(output_buffer=buffer)
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))

    command.upgrade(cfg, "head", sql=True)

    sql = buffer.getvalue()
    for table in ("societies", "users", "refresh_tokens", "society_role_assignments"):
        assert f"CREATE TABLE {table}" in sql
    assert "ix_refresh_tokens_token_hash" in sql
