"""Seed a demo producer, season and a few cards per deck.

Usage:
    python -m quizdeck.cli.seed --season-name "Demo Season" --cards-per-deck 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from sqlalchemy import select

from quizdeck.config import settings
from quizdeck.logging_config import setup_logging
from quizdeck.models.fields import DIFFICULTIES, Difficulty, Role
from quizdeck.schemas.users import User
from quizdeck.services import card_service, season_service, user_service
from quizdeck.services.errors import DuplicateUserError
from quizdeck.utils.db_async import SessionLocal, dispose_engine, init_db

logger = logging.getLogger("quizdeck.cli.seed")

SAMPLE_QUESTIONS: dict[Difficulty, list[tuple[str, str]]] = {
    Difficulty.EASY: [
        ("What color do you get by mixing blue and yellow?", "Green"),
        ("How many legs does a spider have?", "8"),
        ("What is the capital of France?", "Paris"),
        ("What is frozen water called?", "Ice"),
        ("How many days are in a leap year?", "366"),
    ],
    Difficulty.MEDIUM: [
        ("Which planet is known as the Red Planet?", "Mars"),
        ("What is the chemical symbol for gold?", "Au"),
        ("Who wrote 'Pride and Prejudice'?", "Jane Austen"),
        ("What is the largest ocean on Earth?", "Pacific"),
        ("In which year did the Berlin Wall fall?", "1989"),
    ],
    Difficulty.HARD: [
        ("What is the smallest prime number greater than 100?", "101"),
        ("Which element has atomic number 74?", "Tungsten"),
        ("What is the capital of Bhutan?", "Thimphu"),
        ("Who proved Fermat's Last Theorem?", "Andrew Wiles"),
        ("What is the longest bone in the human body?", "Femur"),
    ],
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed QuizDeck with demo data")
    parser.add_argument(
        "--producer-email",
        default="producer@example.com",
        help="Email of the producer who owns the demo season",
    )
    parser.add_argument("--season-name", default="Demo Season")
    parser.add_argument(
        "--cards-per-deck",
        type=int,
        default=5,
        help="Cards to create in each difficulty deck (at most 52)",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create tables before seeding (skips Alembic)",
    )
    return parser.parse_args(argv)


async def ensure_producer(session, email: str) -> User:
    try:
        return await user_service.create_user(
            session, email=email, name="Demo Producer", role=Role.PRODUCER
        )
    except DuplicateUserError:
        async with session.begin():
            result = await session.execute(
                select(User).where(User.email == user_service.normalize_email(email))  # type: ignore[arg-type]
            )
            return result.scalar_one()


async def main_async(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if not 0 <= args.cards_per_deck <= card_service.DECK_CAPACITY:
        raise ValueError(f"--cards-per-deck must be between 0 and {card_service.DECK_CAPACITY}")

    if args.init_db:
        await init_db()

    try:
        async with SessionLocal() as session:
            producer = await ensure_producer(session, args.producer_email)
            season = await season_service.create_season(
                session,
                name=args.season_name,
                description="Seeded demo data",
                created_by_id=producer.id,
            )
            for difficulty in DIFFICULTIES:
                samples = SAMPLE_QUESTIONS[difficulty]
                for i in range(args.cards_per_deck):
                    question, answer = samples[i % len(samples)]
                    if i >= len(samples):
                        question = f"{question} (#{i + 1})"
                    await card_service.create_card_with_auto_number(
                        session,
                        season_id=season.id,
                        difficulty=difficulty,
                        question=question,
                        correct_answer=answer,
                    )
            logger.info(
                f"Seeded season {season.id} with {args.cards_per_deck} cards per deck "
                f"(producer {producer.email})"
            )
    finally:
        await dispose_engine()


def main() -> None:
    setup_logging(level=settings.log_level, access_log=False)
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
