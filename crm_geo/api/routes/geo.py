"""
REST API endpoints for geocoding and routing
"""
import logging
from fastapi import APIRouter, Depends, Request

from crm_geo.api.schemas.geo import (
    ErrorResponse, GeocodeRequest, GeocodeResponse, RouteRequest, RouteResponse
)
from crm_geo.application.container import get_container
from crm_geo.services.geocode_service import GeocodeService
from crm_geo.services.rate_limiter import get_client_ip
from crm_geo.services.route_service import RouteService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_geocode_service() -> GeocodeService:
    return get_container().geocode_service()


def get_route_service() -> RouteService:
    return get_container().route_service()


@router.post(
    "/geocode",
    response_model=GeocodeResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def geocode(
    body: GeocodeRequest,
    request: Request,
    geocode_service: GeocodeService = Depends(get_geocode_service)
):
    """
    Resolve a free-text address to coordinates

    - **addressText**: address, e.g. "הרצל 10, אשדוד"

    Cache hits are tagged `provider="cache"` and are not rate limited.
    """
    result = await geocode_service.geocode(body.addressText, client_ip=get_client_ip(request.headers))
    return GeocodeResponse(
        lat=result.lat,
        lng=result.lng,
        normalizedAddress=result.normalized_address,
        resolvedAddress=result.resolved_address,
        provider=result.provider
    )


@router.post("/route", response_model=RouteResponse, responses={400: {"model": ErrorResponse}})
async def route(
    body: RouteRequest,
    route_service: RouteService = Depends(get_route_service)
):
    """
    Driving duration and distance between two points

    - **origin** / **destination**: `{lat, lng}`
    - **departureTime**: ISO-8601 (optional, bucketed to 30 minutes)

    Degrades to a straight-line estimate (`provider="fallback"`) when the
    routing provider is unavailable.
    """
    result = await route_service.route(body.origin, body.destination, body.departureTime)
    return RouteResponse(
        durationSeconds=result.duration_seconds,
        distanceMeters=result.distance_meters,
        provider=result.provider
    )
