"""
Geocoding/routing services
"""
from .cache_store import CacheStore
from .geocode_service import GeocodeService
from .rate_limiter import RateLimiter
from .route_service import RouteService
