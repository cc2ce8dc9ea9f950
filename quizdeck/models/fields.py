"""
Enums and constrained field types shared by tables and API models.
"""
from enum import Enum
from typing import Annotated

from pydantic import Field as PydField


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class Role(str, Enum):
    HOST = "HOST"
    PRODUCER = "PRODUCER"
    ADMIN = "ADMIN"


# Display/report order for per-difficulty breakdowns
DIFFICULTIES: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)

CARD_NUMBER = Annotated[int, PydField(ge=1, le=52)]
SEASON_NAME = Annotated[str, PydField(min_length=1, max_length=100)]
SEASON_DESCRIPTION = Annotated[str, PydField(max_length=500)]
QUESTION_TEXT = Annotated[str, PydField(min_length=1, max_length=2000)]
ANSWER_TEXT = Annotated[str, PydField(min_length=1, max_length=1000)]
CONTESTANT_NAME = Annotated[str, PydField(min_length=1, max_length=100)]
