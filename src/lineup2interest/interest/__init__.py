"""Festival interest scoring."""

from .calculator import InterestCalculator
from .scoring import (
    calculate_genre_alignment,
    calculate_score_breakdown,
    interest_level_for,
)

__all__ = [
    "InterestCalculator",
    "calculate_genre_alignment",
    "calculate_score_breakdown",
    "interest_level_for",
]
