"""
QuizDeck API: seasons, decks, live draws, attempts and analytics.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from quizdeck.routes import analytics, cards, game, seasons, users
from quizdeck.utils.db_async import init_db, dispose_engine, describe_database_url, DATABASE_URL

from quizdeck.logging_config import setup_logging
from quizdeck.config import settings

import logging
logger = logging.getLogger(__name__)

setup_logging(
    level=settings.log_level,
    access_log=settings.access_log,
    sql_echo=settings.sql_echo,
)


async def _create_tables_for_dev() -> None:
    logger.info(f"Creating QuizDeck tables on {describe_database_url(DATABASE_URL)}")
    try:
        await init_db()
    except Exception:
        logger.exception("Table creation failed; is the database reachable?")
        raise
    logger.info("QuizDeck tables ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_dev and settings.auto_init_db:
        await _create_tables_for_dev()
    else:
        logger.info("AUTO_INIT_DB off or non-dev env; expecting an Alembic-managed schema")

    yield

    logger.info("Shutting down; closing database connections")
    try:
        await dispose_engine()
    except Exception:
        logger.exception("Engine dispose failed during shutdown")


app = FastAPI(title="QuizDeck", lifespan=lifespan)
for module in (seasons, cards, game, analytics, users):
    app.include_router(module.router)


@app.get("/health")
async def health_check():
    """Liveness check."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
