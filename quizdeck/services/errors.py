"""Business errors raised by the QuizDeck services.

Routes translate these into HTTP status codes. Only ``AttemptRecordingError``
and ``AnalyticsError`` wrap a lower-layer cause (chained with ``raise ... from``).
"""

from __future__ import annotations

from quizdeck.models.fields import Difficulty


class QuizDeckError(Exception):
    """Base class for every expected business-rule violation."""


class DeckFullError(QuizDeckError):
    def __init__(self, difficulty: Difficulty, capacity: int = 52) -> None:
        super().__init__(
            f"{difficulty.value} deck is full ({capacity} cards maximum)"
        )
        self.difficulty = difficulty


class DuplicateCardNumberError(QuizDeckError):
    def __init__(self, card_number: int, difficulty: Difficulty, season_id: int) -> None:
        super().__init__(
            f"Card number {card_number} already exists in {difficulty.value} deck "
            f"for season {season_id}"
        )
        self.card_number = card_number
        self.difficulty = difficulty
        self.season_id = season_id


class DeckEmptyError(QuizDeckError):
    def __init__(self, difficulty: Difficulty, season_id: int) -> None:
        super().__init__(
            f"No cards available in {difficulty.value} deck for season {season_id}"
        )
        self.difficulty = difficulty
        self.season_id = season_id


class CardNotFoundError(QuizDeckError):
    def __init__(self, card_id: int) -> None:
        super().__init__(f"Card with ID {card_id} not found")
        self.card_id = card_id


class SeasonNotFoundError(QuizDeckError):
    def __init__(self, season_id: int) -> None:
        super().__init__(f"Season not found: {season_id}")
        self.season_id = season_id


class ContestantNotFoundError(QuizDeckError):
    def __init__(self, contestant_name: str) -> None:
        super().__init__(f"No attempts found for contestant: {contestant_name}")
        self.contestant_name = contestant_name


class UserNotFoundError(QuizDeckError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class DuplicateUserError(QuizDeckError):
    def __init__(self, email: str) -> None:
        super().__init__("User with this email already exists")
        self.email = email


class SelfRoleChangeError(QuizDeckError):
    def __init__(self) -> None:
        super().__init__("Cannot modify your own role")


class AttemptRecordingError(QuizDeckError):
    """Persistence failure while recording an attempt."""


class AnalyticsError(QuizDeckError):
    """Unexpected failure while computing analytics."""
