"""lineup2interest - Score festival lineups against your listening.

Matches Spotify artists to festival-catalog artists and estimates a
bounded, explainable interest score for every upcoming festival.
"""

from .cli import main

__all__ = ["main"]
