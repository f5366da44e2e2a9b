"""EDMTrain festival source.

API documentation: https://edmtrain.com/api-documentation

Responses are cached through the Cache gateway (events for an hour,
locations for a week). Rate-limited (429) and failed requests are retried
with exponential backoff.
"""

import asyncio
import json
from datetime import date
from typing import Any

import httpx

from ..cache import Cache
from ..logging import get_logger
from ..models import Festival, LineupEntry
from . import BaseFestivalSource, FestivalSourceError

logger = get_logger(__name__)


def event_to_festival(event: dict[str, Any]) -> tuple[Festival, list[LineupEntry]]:
    """Convert an EDMTrain event to a Festival and its lineup."""
    venue = event.get("venue") or {}
    festival_id = str(event["id"])
    location = venue.get("location") or ""
    city, _, state = location.partition(",")

    festival = Festival(
        id=festival_id,
        name=event.get("name") or venue.get("name") or f"Event {festival_id}",
        location=location or None,
        city=city.strip() or None,
        state=state.strip() or None,
        venue_name=venue.get("name"),
        start_date=date.fromisoformat(event["date"]),
        end_date=date.fromisoformat(event["endDate"]) if event.get("endDate") else None,
        ages=event.get("ages"),
        link=event.get("link"),
        is_festival=bool(event.get("festivalInd", False)),
        is_livestream=bool(event.get("livestreamInd", False)),
    )

    lineup = [
        LineupEntry(
            festival_id=festival_id,
            festival_artist_id=str(artist["id"]),
            artist_name=artist["name"],
            is_b2b=bool(artist.get("b2bInd", False)),
        )
        for artist in event.get("artists", [])
    ]
    return festival, lineup


class EdmTrainSource(BaseFestivalSource):
    """EDMTrain API client."""

    DEFAULT_BASE_URL = "https://edmtrain.com/api"
    EVENTS_TTL_SECONDS = 3600
    LOCATIONS_TTL_SECONDS = 7 * 24 * 3600

    def __init__(
        self,
        api_key: str,
        cache: Cache | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the EDMTrain source.

        Args:
            api_key: EDMTrain API key
            cache: Optional cache for API responses
            base_url: API base URL
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt for 429s and network errors
            retry_delay: Base delay in seconds, doubled on each retry
            transport: Optional httpx transport (used by tests)
        """
        self.cache = cache
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Accept": "application/json",
                "X-API-Key": api_key,
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "edmtrain"

    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        query = {}
        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                value = ",".join(str(v) for v in value)
            elif isinstance(value, bool):
                value = str(value).lower()
            query[key] = value

        attempt = 0
        while True:
            try:
                response = await self._client.get(endpoint, params=query)
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    logger.error("edmtrain_request_failed", endpoint=endpoint, error=str(e))
                    raise FestivalSourceError(str(e)) from e
                delay = self.retry_delay * 2**attempt
                logger.warning(
                    "edmtrain_request_retry", endpoint=endpoint, error=str(e), delay=delay
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue

            if response.status_code == 429:
                if attempt >= self.max_retries:
                    raise FestivalSourceError("Rate limit exceeded", status_code=429)
                delay = self.retry_delay * 2**attempt
                logger.warning("edmtrain_rate_limited", endpoint=endpoint, delay=delay)
                await asyncio.sleep(delay)
                attempt += 1
                continue

            break

        if response.is_error:
            logger.error(
                "edmtrain_request_failed",
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise FestivalSourceError(
                f"API request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("edmtrain_invalid_response", endpoint=endpoint, error=str(e))
            raise FestivalSourceError("API returned a non-JSON response") from e

        if not isinstance(payload, dict):
            raise FestivalSourceError("API returned an unexpected payload")
        if not payload.get("success", False):
            raise FestivalSourceError(payload.get("message") or "API request failed")
        return payload.get("data", [])

    async def _cached_request(
        self, cache_key: str, ttl_seconds: int, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                logger.info("edmtrain_cache_hit", cache_key=cache_key)
                return cached

        data = await self._request(endpoint, params)

        if self.cache:
            await self.cache.set(cache_key, data, ttl_seconds)
        return data

    async def search_events(self, **params: Any) -> list[dict[str, Any]]:
        """Search events. Keyword arguments are EDMTrain query parameters."""
        cache_key = f"events:search:{json.dumps(params, sort_keys=True, default=str)}"
        return await self._cached_request(cache_key, self.EVENTS_TTL_SECONDS, "/events", params)

    async def get_locations(self) -> list[dict[str, Any]]:
        return await self._cached_request(
            "locations:all", self.LOCATIONS_TTL_SECONDS, "/locations"
        )

    async def get_festivals(
        self, start_date: date, end_date: date
    ) -> list[tuple[Festival, list[LineupEntry]]]:
        events = await self.search_events(
            startDate=start_date.isoformat(),
            endDate=end_date.isoformat(),
            festivalInd=True,
        )

        festivals = []
        for event in events:
            try:
                festivals.append(event_to_festival(event))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("skipping_event", event_id=event.get("id"), error=str(e))

        logger.info("festivals_fetched", count=len(festivals), source=self.name)
        return festivals

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "EdmTrainSource":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
