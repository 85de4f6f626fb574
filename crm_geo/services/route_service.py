"""
Route resolver: quantize -> cache -> OSRM -> haversine fallback -> persist
"""
import logging
from datetime import datetime
from math import atan2, cos, radians, sin, sqrt
from typing import Any, Optional, Union

from crm_geo.application.dto import LatLng, RouteCacheEntry, RouteProvider, RouteResult
from crm_geo.config import settings
from crm_geo.services.cache_store import CacheStore, build_route_cache_key
from crm_geo.services.coords_policy import parse_coord
from crm_geo.services.providers import OsrmRouter
from crm_geo.utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000


def haversine_meters(origin: LatLng, destination: LatLng) -> float:
    """Great-circle distance using the Haversine formula"""
    dlat = radians(destination.lat - origin.lat)
    dlng = radians(destination.lng - origin.lng)

    a = sin(dlat / 2) ** 2 + cos(radians(origin.lat)) * cos(radians(destination.lat)) * sin(dlng / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def fallback_route(
    origin: LatLng,
    destination: LatLng,
    speed_kmh: Optional[float] = None,
    min_duration_seconds: Optional[int] = None
) -> RouteCacheEntry:
    """Straight-line estimate at an assumed average speed (45 km/h by default)"""
    speed_mps = (speed_kmh or settings.fallback_speed_kmh) * 1000 / 3600
    floor = settings.fallback_min_duration_seconds if min_duration_seconds is None else min_duration_seconds

    distance_meters = round(haversine_meters(origin, destination))
    duration_seconds = max(floor, round(distance_meters / speed_mps))
    return RouteCacheEntry(
        duration_seconds=duration_seconds,
        distance_meters=distance_meters,
        provider=RouteProvider.FALLBACK.value
    )


def to_lat_lng(point: Any) -> Optional[LatLng]:
    """Accept a LatLng, a mapping or an object with lat/lng; None if not finite"""
    if point is None:
        return None
    if isinstance(point, dict):
        lat, lng = point.get("lat"), point.get("lng")
    else:
        lat, lng = getattr(point, "lat", None), getattr(point, "lng", None)
    parsed_lat, parsed_lng = parse_coord(lat), parse_coord(lng)
    if parsed_lat is None or parsed_lng is None:
        return None
    return LatLng(lat=parsed_lat, lng=parsed_lng)


class RouteService:
    def __init__(
        self,
        cache_store: CacheStore,
        router: OsrmRouter,
        bucket_minutes: Optional[int] = None
    ):
        self.cache_store = cache_store
        self.router = router
        self.bucket_minutes = bucket_minutes or settings.route_bucket_minutes

    async def route(
        self,
        origin: Any,
        destination: Any,
        departure_time: Union[None, str, datetime] = None
    ) -> RouteResult:
        """
        Driving duration/distance between two points.

        Never fails once the input is valid: provider problems degrade to the
        haversine estimate, which is cached as well so the same bucket does
        not hit a failing provider again.

        Raises:
            InvalidInputError: origin/destination without finite lat/lng
        """
        origin_point = to_lat_lng(origin)
        destination_point = to_lat_lng(destination)
        if origin_point is None or destination_point is None:
            raise InvalidInputError("origin and destination are required")

        key = build_route_cache_key(origin_point, destination_point, departure_time, self.bucket_minutes)

        cached = await self.cache_store.get_route_cache(key)
        if cached:
            return RouteResult(**cached.model_dump())

        entry = None
        try:
            result = await self.router.route(key.origin_lat, key.origin_lng, key.dest_lat, key.dest_lng)
            duration, distance = (round(result[0]), round(result[1])) if result else (0, 0)
            # sub-second answers round to 0 and are treated as unusable
            if duration > 0 and distance > 0:
                entry = RouteCacheEntry(
                    duration_seconds=duration,
                    distance_meters=distance,
                    provider=RouteProvider.OSRM.value
                )
            else:
                logger.info(f"OSRM returned no usable route for {key.memory_key()}, using fallback")
        except Exception as e:
            logger.warning(f"OSRM route error: {e}")

        if entry is None:
            entry = fallback_route(origin_point, destination_point)

        await self.cache_store.upsert_route_cache(key, entry)
        return RouteResult(**entry.model_dump())
