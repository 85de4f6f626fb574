"""
Pydantic schemas for the API
"""
from .geo import (
    GeocodeRequest, GeocodeResponse, PointRequest,
    RouteRequest, RouteResponse, ErrorResponse
)

__all__ = [
    'GeocodeRequest',
    'GeocodeResponse',
    'PointRequest',
    'RouteRequest',
    'RouteResponse',
    'ErrorResponse',
]
