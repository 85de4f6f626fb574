"""
HTTP clients for the geocoding (Google, Nominatim) and routing (OSRM) providers.

Geocoders never raise: every call returns a tagged ``ProviderResult`` so the
resolver's fallback chain is a plain match on ``ok``/``reason``.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from crm_geo.application.dto import GeocodeHit, GeoProvider, MissReason, ProviderMiss, ProviderResult
from crm_geo.config import settings
from crm_geo.services.coords_policy import is_usable_job_coords, parse_coord

logger = logging.getLogger(__name__)


class ProviderClient:
    """Shared aiohttp session handling for provider clients"""

    name = "provider"

    def __init__(self, timeout_seconds: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.provider_timeout_seconds)
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent}
            )
        return self.session

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET and decode JSON. Non-2xx, timeouts and bad bodies raise."""
        session = self._get_session()
        async with session.get(url, params=params) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    def _hit(self, lat: Any, lng: Any, resolved_address: Optional[str], query: str) -> ProviderResult:
        parsed_lat = parse_coord(lat)
        parsed_lng = parse_coord(lng)
        if not is_usable_job_coords(parsed_lat, parsed_lng):
            # (0,0) and out-of-region answers to unmatched queries are never accepted
            logger.debug(f"{self.name}: unusable coordinates ({lat}, {lng}) for '{query}'")
            return ProviderMiss(reason=MissReason.NOT_FOUND)
        return GeocodeHit(
            lat=parsed_lat,
            lng=parsed_lng,
            resolved_address=resolved_address or query,
            provider=self.name
        )


class GoogleGeocoder(ProviderClient):
    """Google Geocoding API. Requires a server-held key."""

    name = GeoProvider.GOOGLE.value

    def __init__(self, api_key: Optional[str] = None, url: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.url = url or settings.google_geocode_url

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def geocode(self, query: str) -> ProviderResult:
        if not self.api_key:
            return ProviderMiss(reason=MissReason.NOT_FOUND, detail="no api key")

        try:
            body = await self._get_json(self.url, params={"address": query, "key": self.api_key})
        except Exception as e:
            logger.warning(f"Google geocoding error for '{query}': {e}")
            return ProviderMiss(reason=MissReason.PROVIDER_ERROR, detail=str(e))

        status = (body or {}).get("status", "OK") if isinstance(body, dict) else None
        if status is None or status not in ("OK", "ZERO_RESULTS"):
            logger.warning(f"Google geocoding status {status} for '{query}'")
            return ProviderMiss(reason=MissReason.PROVIDER_ERROR, detail=f"status {status}")

        results = body.get("results") or []
        if not results:
            return ProviderMiss(reason=MissReason.NOT_FOUND)

        first = results[0] or {}
        location = (first.get("geometry") or {}).get("location") or {}
        return self._hit(location.get("lat"), location.get("lng"), first.get("formatted_address"), query)


class NominatimGeocoder(ProviderClient):
    """OSM Nominatim search, restricted to a country. Needs a descriptive User-Agent."""

    name = GeoProvider.NOMINATIM.value

    def __init__(self, url: Optional[str] = None, country_codes: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.url = url or settings.nominatim_search_url
        self.country_codes = country_codes or settings.nominatim_country_codes

    async def geocode(self, query: str) -> ProviderResult:
        params = {
            "format": "json",
            "limit": 1,
            "countrycodes": self.country_codes,
            "q": query,
        }
        try:
            body = await self._get_json(self.url, params=params)
        except Exception as e:
            logger.warning(f"Nominatim geocoding error for '{query}': {e}")
            return ProviderMiss(reason=MissReason.PROVIDER_ERROR, detail=str(e))

        if not isinstance(body, list):
            logger.warning(f"Nominatim returned malformed body for '{query}'")
            return ProviderMiss(reason=MissReason.PROVIDER_ERROR, detail="malformed body")
        if not body:
            return ProviderMiss(reason=MissReason.NOT_FOUND)

        first = body[0] or {}
        return self._hit(first.get("lat"), first.get("lon"), first.get("display_name"), query)


class OsrmRouter(ProviderClient):
    """OSRM driving route between two points"""

    name = "osrm"

    def __init__(self, url: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.url = (url or settings.osrm_route_url).rstrip("/")

    async def route(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float
    ) -> Optional[Tuple[float, float]]:
        """
        Returns:
            (duration_seconds, distance_meters) of the first route, or None
            when the answer has no positive duration/distance.

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError on transport/HTTP failure
        """
        url = f"{self.url}/{origin_lng},{origin_lat};{dest_lng},{dest_lat}"
        body = await self._get_json(url, params={
            "overview": "false",
            "alternatives": "false",
            "steps": "false",
        })
        routes = (body or {}).get("routes") if isinstance(body, dict) else None
        if not routes:
            return None

        duration = parse_coord(routes[0].get("duration"))
        distance = parse_coord(routes[0].get("distance"))
        if not duration or not distance or duration <= 0 or distance <= 0:
            return None
        return duration, distance
