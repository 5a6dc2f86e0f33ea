import logging
from typing import Optional

from orbitcore.config import Settings, load_settings
from orbitcore.ephemeris.cache import EphemerisCache
from orbitcore.ephemeris.horizons import FetchFailure, HorizonsClient, resolve_body
from orbitcore.errors import InvalidInputError

logger = logging.getLogger(__name__)


class EphemerisProvider:
    """
    Cached access to Horizons state-vector series.

    Example:
        >>> provider = EphemerisProvider.from_settings()
        >>> series = provider.get_ephemeris("mars", "2026-07-01", "2026-08-01", 10)
        >>> len(series)
        11
    """

    def __init__(self, client: HorizonsClient, cache: EphemerisCache):
        self.client = client
        self.cache = cache

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "EphemerisProvider":
        settings = settings or load_settings()
        client = HorizonsClient(base_url=settings.horizons_url, timeout=settings.http_timeout)
        cache = EphemerisCache(ttl=settings.cache_ttl, max_entries=settings.cache_max_entries)
        return cls(client, cache)

    def get_ephemeris(self, body: str, start_date: str, end_date: str, sample_count: int) -> tuple:
        """
        Heliocentric state vectors of a planet over [start_date, end_date].

        Args:
            body (str): Planet name, e.g. 'earth'.
            start_date (str): Window start.
            end_date (str): Window end.
            sample_count (int): Number of uniform steps; sample_count + 1 states are returned.

        Returns:
            tuple[StateVector, ...] in ascending epoch.

        Raises:
            InvalidInputError: Unknown planet or non-positive sample count (before any request).
            NetworkError, FormatError, EmptyResultError: Upstream failure.
        """
        body_id = resolve_body(body)
        try:
            count = int(sample_count)
        except (TypeError, ValueError, OverflowError):
            raise InvalidInputError(f"sample_count must be an integer, got {sample_count!r}")
        if count < 1:
            raise InvalidInputError(f"sample_count must be at least 1, got {sample_count}")
        sample_count = count

        key = (body_id, start_date, end_date, sample_count)
        series = self.cache.get(key)
        if series is not None:
            logger.debug("Ephemeris cache hit for %s", key)
            return series

        logger.debug("Ephemeris cache miss for %s", key)
        outcome = self.client.fetch(body_id, start_date, end_date, sample_count)
        if isinstance(outcome, FetchFailure):
            raise outcome.to_exception()

        series = outcome.series
        if len(series) != sample_count + 1:
            logger.warning("Horizons returned %d states for %s, expected %d", len(series), key, sample_count + 1)

        self.cache.put(key, series)
        return series
