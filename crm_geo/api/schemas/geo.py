"""
Pydantic schemas for the geocode/route API
"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class GeocodeRequest(BaseModel):
    """Validation beyond presence is done by the resolver (400 on empty)"""
    addressText: Optional[str] = Field(None, description="Free-text address, e.g. 'הרצל 10, אשדוד'")


class GeocodeResponse(BaseModel):
    lat: float
    lng: float
    normalizedAddress: str
    resolvedAddress: str
    provider: str = Field(..., description="google, nominatim or cache")


class PointRequest(BaseModel):
    """Numbers or numeric strings; non-finite values are rejected with 400"""
    lat: Any = None
    lng: Any = None


class RouteRequest(BaseModel):
    origin: Optional[PointRequest] = None
    destination: Optional[PointRequest] = None
    departureTime: Optional[str] = Field(None, description="ISO-8601, defaults to now")


class RouteResponse(BaseModel):
    durationSeconds: int
    distanceMeters: int
    provider: str = Field(..., description="osrm or fallback")


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = Field(None, description="invalid_input, not_found, rate_limited or provider_error")
    details: Optional[str] = None
