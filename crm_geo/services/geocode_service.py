"""
Geocode resolver: normalize -> cache -> rate limit -> providers -> persist
"""
import logging
from typing import List, Optional, Sequence, Tuple

from crm_geo.application.dto import GeoCacheEntry, GeocodeHit, GeocodeResult, GeoProvider, MissReason
from crm_geo.config import settings
from crm_geo.services.address_query import build_address_queries
from crm_geo.services.cache_store import CacheStore, address_hash
from crm_geo.services.coords_policy import is_usable_job_coords, normalize_address_text
from crm_geo.services.providers import GoogleGeocoder, NominatimGeocoder
from crm_geo.services.rate_limiter import RateLimiter
from crm_geo.utils.errors import InvalidInputError, NotFoundError, ProviderError, RateLimitedError

logger = logging.getLogger(__name__)

GEOCODE_SCOPE = "geocode"


async def geocode_with_providers(
    queries: Sequence[str],
    providers: Sequence,
) -> Tuple[Optional[GeocodeHit], bool]:
    """
    Try every query against each provider in priority order.

    Returns:
        (first usable hit or None, whether any provider call errored)
    """
    had_error = False
    for provider in providers:
        if provider is None or not getattr(provider, "is_configured", True):
            continue
        for query in queries:
            result = await provider.geocode(query)
            if result.ok:
                return result, had_error
            if result.reason == MissReason.PROVIDER_ERROR:
                had_error = True
    return None, had_error


class GeocodeService:
    def __init__(
        self,
        cache_store: CacheStore,
        rate_limiter: RateLimiter,
        primary: Optional[GoogleGeocoder] = None,
        secondary: Optional[NominatimGeocoder] = None,
        rate_limit: Optional[int] = None,
        rate_window_seconds: Optional[float] = None
    ):
        self.cache_store = cache_store
        self.rate_limiter = rate_limiter
        self.primary = primary
        self.secondary = secondary
        self.rate_limit = rate_limit or settings.geocode_rate_limit
        self.rate_window_seconds = rate_window_seconds or settings.geocode_rate_window_seconds

    @property
    def providers(self) -> List:
        return [self.primary, self.secondary]

    async def geocode(self, address_text: Optional[str], client_ip: str = "unknown") -> GeocodeResult:
        """
        Resolve an address to usable coordinates

        Args:
            address_text: Free-text address
            client_ip: Caller IP for the rate limiter

        Raises:
            InvalidInputError: empty address
            RateLimitedError: per-IP window exhausted (cache misses only)
            NotFoundError: providers answered, nothing usable
            ProviderError: a provider failed and nothing usable was found
        """
        normalized = normalize_address_text(address_text)
        if not normalized:
            raise InvalidInputError("addressText is required")

        hash_value = address_hash(normalized)
        cached = await self.cache_store.get_geo_cache_by_hash(hash_value)
        if cached and is_usable_job_coords(cached.lat, cached.lng):
            return GeocodeResult(
                lat=cached.lat,
                lng=cached.lng,
                normalized_address=cached.normalized_address or normalized,
                resolved_address=cached.normalized_address or normalized,
                provider=GeoProvider.CACHE.value
            )

        decision = self.rate_limiter.limit_by_ip(
            client_ip, GEOCODE_SCOPE, self.rate_limit, self.rate_window_seconds
        )
        if not decision.allowed:
            raise RateLimitedError("Too many requests", decision.retry_after_seconds)

        queries = build_address_queries(normalized)
        hit, had_error = await geocode_with_providers(queries, self.providers)

        if hit is None:
            if had_error:
                logger.warning(f"Geocoding failed with provider errors: '{normalized}'")
                raise ProviderError("Geocoding provider failed")
            logger.info(f"Address not found: '{normalized}'")
            raise NotFoundError("Address not found")

        resolved = hit.resolved_address or normalized
        await self.cache_store.upsert_geo_cache(hash_value, GeoCacheEntry(
            normalized_address=resolved,
            lat=hit.lat,
            lng=hit.lng,
            provider=hit.provider
        ))
        logger.info(f"Geocoded '{normalized}' via {hit.provider}")
        return GeocodeResult(
            lat=hit.lat,
            lng=hit.lng,
            normalized_address=resolved,
            resolved_address=resolved,
            provider=hit.provider
        )
