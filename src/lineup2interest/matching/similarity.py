"""Confidence scoring between two artist names."""

from rapidfuzz.distance import Levenshtein

from ..models import MatchMethod
from .normalize import normalize_artist_name

EXACT_CONFIDENCE = 1.0
NORMALIZED_CONFIDENCE = 0.95


def is_exact_match(name_a: str, name_b: str) -> bool:
    return name_a.lower() == name_b.lower()


def is_normalized_match(name_a: str, name_b: str) -> bool:
    normalized_a = normalize_artist_name(name_a)
    return bool(normalized_a) and normalized_a == normalize_artist_name(name_b)


def fuzzy_similarity(name_a: str, name_b: str) -> float:
    """Levenshtein similarity of the normalized names, in [0, 1]."""
    normalized_a = normalize_artist_name(name_a)
    normalized_b = normalize_artist_name(name_b)
    max_length = max(len(normalized_a), len(normalized_b))
    if max_length == 0:
        return 1.0
    distance = Levenshtein.distance(normalized_a, normalized_b)
    return max(0.0, min(1.0, 1 - distance / max_length))


def match_confidence(name_a: str, name_b: str, method: MatchMethod) -> float | None:
    """Confidence that two names refer to the same artist under ``method``.

    Returns None when the method does not apply: exact and normalized are
    all-or-nothing, fuzzy always yields a score. 1.0 is reserved for exact
    (and manual) matches; a normalized match is worth 0.95.
    """
    if method == MatchMethod.EXACT:
        return EXACT_CONFIDENCE if is_exact_match(name_a, name_b) else None
    if method == MatchMethod.NORMALIZED:
        return NORMALIZED_CONFIDENCE if is_normalized_match(name_a, name_b) else None
    if method == MatchMethod.FUZZY:
        return fuzzy_similarity(name_a, name_b)
    raise ValueError(f"{method.value} mappings are not scored")
