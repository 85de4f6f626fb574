"""
Repositories for the geo_cache and route_cache tables
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from crm_geo.application.dto import GeoCacheEntry, RouteCacheEntry, RouteCacheKey, GeoProvider, RouteProvider
from crm_geo.database.connection import SessionFactory
from crm_geo.models.geocache import GeoCacheDB, RouteCacheDB
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class GeoCacheRepository(BaseRepository):
    """geo_cache: one row per address hash"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        super().__init__(GeoCacheDB, session_factory)

    def get_by_hash(self, address_hash: str, session: Session = None) -> Optional[GeoCacheEntry]:
        if session is None:
            with self._session() as session:
                return self._get_by_hash(address_hash, session)
        return self._get_by_hash(address_hash, session)

    def _get_by_hash(self, address_hash: str, session: Session) -> Optional[GeoCacheEntry]:
        row = session.query(GeoCacheDB).filter(
            GeoCacheDB.address_hash == address_hash
        ).limit(1).one_or_none()
        if row is None:
            return None
        return GeoCacheEntry(
            normalized_address=row.normalized_address,
            lat=float(row.lat),
            lng=float(row.lng),
            provider=row.provider or GeoProvider.NOMINATIM.value
        )

    def save(self, address_hash: str, entry: GeoCacheEntry, session: Session = None) -> None:
        self.upsert(
            {
                "address_hash": address_hash,
                "normalized_address": entry.normalized_address,
                "lat": entry.lat,
                "lng": entry.lng,
                "provider": entry.provider,
            },
            conflict_columns=["address_hash"],
            session=session
        )


class RouteCacheRepository(BaseRepository):
    """route_cache: one row per (origin, destination, departure bucket)"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        super().__init__(RouteCacheDB, session_factory)

    def get_by_key(self, key: RouteCacheKey, session: Session = None) -> Optional[RouteCacheEntry]:
        if session is None:
            with self._session() as session:
                return self._get_by_key(key, session)
        return self._get_by_key(key, session)

    def _get_by_key(self, key: RouteCacheKey, session: Session) -> Optional[RouteCacheEntry]:
        row = session.query(RouteCacheDB).filter(
            RouteCacheDB.origin_lat == key.origin_lat,
            RouteCacheDB.origin_lng == key.origin_lng,
            RouteCacheDB.dest_lat == key.dest_lat,
            RouteCacheDB.dest_lng == key.dest_lng,
            RouteCacheDB.departure_bucket == key.departure_bucket,
        ).limit(1).one_or_none()
        if row is None:
            return None
        return RouteCacheEntry(
            duration_seconds=int(row.duration_seconds),
            distance_meters=int(row.distance_meters),
            provider=row.provider or RouteProvider.OSRM.value
        )

    def save(self, key: RouteCacheKey, entry: RouteCacheEntry, session: Session = None) -> None:
        self.upsert(
            dict(key.model_dump(), **entry.model_dump()),
            conflict_columns=RouteCacheDB.conflict_columns(),
            session=session
        )
