"""Async SQLAlchemy engine and session helpers."""

import importlib
import ssl
from typing import Any, AsyncGenerator, Dict, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from quizdeck.config import settings

SCHEMA_MODULES = (
    "quizdeck.schemas.users",
    "quizdeck.schemas.seasons",
    "quizdeck.schemas.cards",
    "quizdeck.schemas.attempts",
)


def load_schema_modules() -> None:
    """Import every table module so SQLModel.metadata is fully populated."""
    for module in SCHEMA_MODULES:
        importlib.import_module(module)


def normalize_db_url(url: str) -> str:
    """Select the asyncpg driver for bare ``postgres://``/``postgresql://`` URLs.

    An explicit driver (``postgresql+psycopg://``) is left alone.
    """
    try:
        u = make_url(url)
    except Exception:
        for prefix in ("postgresql://", "postgres://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url.split("://", 1)[1]
        return url

    driver = (u.drivername or "").lower()
    if "+" not in driver and driver in ("postgres", "postgresql"):
        u = u.set(drivername="postgresql+asyncpg")
    return u.render_as_string(hide_password=False)


def _ssl_connect_args(sslmode: str | None) -> Dict[str, Any]:
    if not sslmode:
        return {}
    mode = sslmode.lower()
    if mode == "disable":
        return {"ssl": False}
    if mode in {"allow", "prefer"}:
        # asyncpg negotiates TLS on its own when the server requires it
        return {}
    if mode == "require":
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return {"ssl": ctx}
    if mode == "verify-ca":
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        return {"ssl": ctx}
    return {"ssl": ssl.create_default_context()}


def prepare_asyncpg_connection(url: str) -> Tuple[str, Dict[str, Any]]:
    """Strip libpq-only query args (sslmode, channel_binding) and build connect kwargs."""
    split = urlsplit(normalize_db_url(url))
    sslmode = None
    kept = []
    for key, value in parse_qsl(split.query, keep_blank_values=True):
        if key == "sslmode":
            sslmode = value
        elif key != "channel_binding":
            kept.append((key, value))

    cleaned_url = urlunsplit(split._replace(query=urlencode(kept, doseq=True))).rstrip("?")
    return cleaned_url, _ssl_connect_args(sslmode)


DATABASE_URL, CONNECT_ARGS = prepare_asyncpg_connection(settings.database_url)

engine = create_async_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    connect_args=CONNECT_ARGS,
)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with SessionLocal() as session:
        yield session


async def init_db():
    """Create all tables (dev convenience; production uses Alembic)."""
    load_schema_modules()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose of the async engine and its connection pool."""
    await engine.dispose()


def describe_database_url(url: str) -> str:
    """Return a password-free description of the DB URL for logging.

    Example: "postgresql+asyncpg://user@host:5432/dbname"
    """
    try:
        u = make_url(url)
    except Exception:
        return "<unparseable database URL>"
    port = f":{u.port}" if u.port else ""
    return f"{u.drivername}://{u.username or '?'}@{u.host or '?'}{port}/{u.database or '?'}"
