"""Alembic environment for the QuizDeck schema (async, asyncpg)."""
import asyncio
import os
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

load_dotenv(Path(__file__).resolve().parents[1] / ".env", override=False)

from quizdeck.utils.db_async import load_schema_modules, prepare_asyncpg_connection  # noqa: E402

load_schema_modules()
target_metadata = SQLModel.metadata


def _database_target() -> tuple[str, dict]:
    raw = os.getenv("DATABASE_URL")
    if not raw:
        raise RuntimeError("Set DATABASE_URL before running QuizDeck migrations")
    url, connect_args = prepare_asyncpg_connection(raw)
    # ConfigParser treats % as interpolation
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return url, connect_args


def _migrate(**configure_kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        **configure_kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online(url: str, connect_args: dict) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool, connect_args=connect_args)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(lambda conn: _migrate(connection=conn))
    finally:
        await engine.dispose()


url, connect_args = _database_target()
if context.is_offline_mode():
    _migrate(url=url, literal_binds=True)
else:
    asyncio.run(_migrate_online(url, connect_args))
