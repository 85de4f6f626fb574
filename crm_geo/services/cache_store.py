"""
Two-tier cache for geocode and route results.

A process-local dict is checked first and always updated on write; it fronts
an optional persistent store. Store failures never reach the caller: reads
degrade to "not cached", writes are best-effort and the memory tier stays
authoritative for the rest of the process lifetime.
"""
import asyncio
import hashlib
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from crm_geo.application.dto import GeoCacheEntry, LatLng, RouteCacheEntry, RouteCacheKey
from crm_geo.repositories.cache_repository import GeoCacheRepository, RouteCacheRepository
from crm_geo.services.coords_policy import normalize_address_text
from crm_geo.utils.errors import best_effort

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_MINUTES = 30
COORD_PRECISION = 6


def address_hash(normalized_address: str) -> str:
    """sha256 hex digest of the lower-cased normalized address"""
    text = normalize_address_text(normalized_address).lower()
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _parse_departure_time(value: Union[None, str, datetime]) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable departure time '{value}', using now")
            parsed = datetime.now(timezone.utc)
    else:
        parsed = datetime.now(timezone.utc)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_departure_bucket_iso(
    departure_time: Union[None, str, datetime] = None,
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES
) -> str:
    """
    Floor a departure time (or now) to the preceding bucket boundary.

    Returns an ISO-8601 UTC string with millisecond precision, e.g.
    ``2026-02-13T08:00:00.000Z``.
    """
    moment = _parse_departure_time(departure_time)
    bucket_seconds = bucket_minutes * 60
    epoch = int(moment.timestamp())
    floored = datetime.fromtimestamp(epoch - epoch % bucket_seconds, tz=timezone.utc)
    return floored.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def round_coordinate(value: float) -> float:
    return round(float(value), COORD_PRECISION)


def build_route_cache_key(
    origin: LatLng,
    destination: LatLng,
    departure_time: Union[None, str, datetime] = None,
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES
) -> RouteCacheKey:
    return RouteCacheKey(
        origin_lat=round_coordinate(origin.lat),
        origin_lng=round_coordinate(origin.lng),
        dest_lat=round_coordinate(destination.lat),
        dest_lng=round_coordinate(destination.lng),
        departure_bucket=to_departure_bucket_iso(departure_time, bucket_minutes),
    )


class CacheStore:
    def __init__(
        self,
        geo_repository: Optional[GeoCacheRepository] = None,
        route_repository: Optional[RouteCacheRepository] = None
    ):
        self.geo_repository = geo_repository
        self.route_repository = route_repository
        self._memory: Dict[str, object] = {}

    @property
    def has_persistent_store(self) -> bool:
        return bool(
            (self.geo_repository and self.geo_repository.is_configured)
            or (self.route_repository and self.route_repository.is_configured)
        )

    # ---- geocode -------------------------------------------------------

    async def get_geo_cache_by_hash(self, hash_value: str) -> Optional[GeoCacheEntry]:
        if not hash_value:
            return None

        mem_key = f"geo:{hash_value}"
        cached = self._memory.get(mem_key)
        if cached is not None:
            logger.debug(f"Geocode cache hit (memory): {hash_value[:12]}")
            return cached

        if not self.geo_repository or not self.geo_repository.is_configured:
            return None

        entry = await asyncio.to_thread(self._load_geo, hash_value)
        if entry is None:
            return None
        logger.debug(f"Geocode cache hit (db): {hash_value[:12]}")
        self._memory[mem_key] = entry
        return entry

    async def upsert_geo_cache(self, hash_value: str, entry: GeoCacheEntry) -> None:
        if not hash_value:
            return
        self._memory[f"geo:{hash_value}"] = entry

        if not self.geo_repository or not self.geo_repository.is_configured:
            return
        await asyncio.to_thread(self._save_geo, hash_value, entry)

    @best_effort(action="geo_cache read")
    def _load_geo(self, hash_value: str) -> Optional[GeoCacheEntry]:
        return self.geo_repository.get_by_hash(hash_value)

    @best_effort(action="geo_cache upsert")
    def _save_geo(self, hash_value: str, entry: GeoCacheEntry) -> None:
        self.geo_repository.save(hash_value, entry)

    # ---- route ---------------------------------------------------------

    async def get_route_cache(self, key: RouteCacheKey) -> Optional[RouteCacheEntry]:
        mem_key = key.memory_key()
        cached = self._memory.get(mem_key)
        if cached is not None:
            logger.debug(f"Route cache hit (memory): {mem_key}")
            return cached

        if not self.route_repository or not self.route_repository.is_configured:
            return None

        entry = await asyncio.to_thread(self._load_route, key)
        if entry is None:
            return None
        logger.debug(f"Route cache hit (db): {mem_key}")
        self._memory[mem_key] = entry
        return entry

    async def upsert_route_cache(self, key: RouteCacheKey, entry: RouteCacheEntry) -> None:
        self._memory[key.memory_key()] = entry

        if not self.route_repository or not self.route_repository.is_configured:
            return
        await asyncio.to_thread(self._save_route, key, entry)

    @best_effort(action="route_cache read")
    def _load_route(self, key: RouteCacheKey) -> Optional[RouteCacheEntry]:
        return self.route_repository.get_by_key(key)

    @best_effort(action="route_cache upsert")
    def _save_route(self, key: RouteCacheKey, entry: RouteCacheEntry) -> None:
        self.route_repository.save(key, entry)
