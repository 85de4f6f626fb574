from .geo_dto import (
    GeoProvider, RouteProvider, MissReason, LatLng,
    GeoCacheEntry, RouteCacheKey, RouteCacheEntry,
    GeocodeHit, ProviderMiss, ProviderResult,
    GeocodeResult, RouteResult, JobCoordsDTO,
)

__all__ = [
    'GeoProvider',
    'RouteProvider',
    'MissReason',
    'LatLng',
    'GeoCacheEntry',
    'RouteCacheKey',
    'RouteCacheEntry',
    'GeocodeHit',
    'ProviderMiss',
    'ProviderResult',
    'GeocodeResult',
    'RouteResult',
    'JobCoordsDTO',
]
