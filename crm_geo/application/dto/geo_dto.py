"""
Data Transfer Objects for geocoding and routing
"""
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel


class GeoProvider(str, Enum):
    GOOGLE = "google"
    NOMINATIM = "nominatim"
    CACHE = "cache"


class RouteProvider(str, Enum):
    OSRM = "osrm"
    FALLBACK = "fallback"


class MissReason(str, Enum):
    NOT_FOUND = "not_found"
    PROVIDER_ERROR = "provider_error"


class LatLng(BaseModel):
    lat: float
    lng: float


class GeoCacheEntry(BaseModel):
    """Cached geocode, keyed by address hash"""
    normalized_address: Optional[str] = None
    lat: float
    lng: float
    provider: str = GeoProvider.NOMINATIM.value

    class Config:
        from_attributes = True


class RouteCacheKey(BaseModel):
    """Endpoints rounded to 6 decimals plus the departure bucket"""
    origin_lat: float
    origin_lng: float
    dest_lat: float
    dest_lng: float
    departure_bucket: str

    def memory_key(self) -> str:
        return (
            f"route:{self.origin_lat}:{self.origin_lng}:"
            f"{self.dest_lat}:{self.dest_lng}:{self.departure_bucket}"
        )


class RouteCacheEntry(BaseModel):
    duration_seconds: int
    distance_meters: int
    provider: str = RouteProvider.OSRM.value

    class Config:
        from_attributes = True


class GeocodeHit(BaseModel):
    """Usable provider answer"""
    ok: Literal[True] = True
    lat: float
    lng: float
    resolved_address: str
    provider: str


class ProviderMiss(BaseModel):
    """Provider answered nothing usable, or failed"""
    ok: Literal[False] = False
    reason: MissReason
    detail: Optional[str] = None


ProviderResult = Union[GeocodeHit, ProviderMiss]


class GeocodeResult(BaseModel):
    lat: float
    lng: float
    normalized_address: str
    resolved_address: str
    provider: str


class RouteResult(BaseModel):
    duration_seconds: int
    distance_meters: int
    provider: str


class JobCoordsDTO(BaseModel):
    """Job row as seen by the coordinate backfill"""
    id: str
    title: Optional[str] = None
    address_text: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
