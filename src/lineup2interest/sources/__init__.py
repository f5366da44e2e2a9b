"""Festival catalog sources.

All sources implement the FestivalSource protocol so the pipeline can sync
from any listing service.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Protocol, runtime_checkable

from ..models import Festival, LineupEntry


class FestivalSourceError(Exception):
    """A festival listing API request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class FestivalSource(Protocol):
    """Protocol for festival listing sources."""

    @property
    def name(self) -> str:
        """Unique identifier for this source."""
        ...

    async def get_festivals(
        self, start_date: date, end_date: date
    ) -> list[tuple[Festival, list[LineupEntry]]]:
        """Get festivals starting within the date range, with their lineups.
        
        Args:
            start_date: First festival start date to include
            end_date: Last festival start date to include
            
        Returns:
            List of (festival, lineup) pairs
        """
        ...


class BaseFestivalSource(ABC):
    """Abstract base class for festival sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def get_festivals(
        self, start_date: date, end_date: date
    ) -> list[tuple[Festival, list[LineupEntry]]]:
        pass


from .edmtrain import EdmTrainSource, event_to_festival

__all__ = [
    "BaseFestivalSource",
    "EdmTrainSource",
    "FestivalSource",
    "FestivalSourceError",
    "event_to_festival",
]
