"""Artist name normalization for cross-catalog comparison.

Two steps go past a single cleanup pass on purpose. Accents are folded
(NFKD, combining marks dropped) before anything else. The whole pass then
repeats until the name stops changing, so a name can lose more than one
leading prefix: "the the x" and "dj !! the x" both become "x". Without the
repeat, normalizing an already normalized name could strip another prefix.
"""

import re
import unicodedata

_PREFIX_RE = re.compile(r"^(the|dj|djz)\s+", re.IGNORECASE)
_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def _fold_accents(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _normalize_once(name: str) -> str:
    name = _fold_accents(name).lower().strip()
    name = _PREFIX_RE.sub("", name, count=1)
    name = _NON_WORD_RE.sub("", name)
    return _WHITESPACE_RE.sub(" ", name).strip()


def normalize_artist_name(name: str) -> str:
    """Reduce an artist display name to a canonical comparable form.

    Lowercases, folds accents, strips one leading "the"/"dj"/"djz" word,
    drops punctuation and collapses whitespace:

        >>> normalize_artist_name("The Chainsmokers")
        'chainsmokers'
        >>> normalize_artist_name("DJ Snake")
        'snake'
        >>> normalize_artist_name("Tiësto")
        'tiesto'

    The steps repeat until the result stops changing, so the function is
    idempotent even when removing punctuation exposes another prefix.
    """
    current = name
    while True:
        normalized = _normalize_once(current)
        if normalized == current:
            return normalized
        current = normalized
