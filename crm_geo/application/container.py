"""
Dependency Injection Container for services, repositories and provider clients
"""
from dependency_injector import containers, providers

from crm_geo.config import settings
from crm_geo.database.connection import create_session_factory
from crm_geo.repositories.cache_repository import GeoCacheRepository, RouteCacheRepository
from crm_geo.repositories.job_repository import JobRepository
from crm_geo.services.cache_store import CacheStore
from crm_geo.services.geocode_service import GeocodeService
from crm_geo.services.providers import GoogleGeocoder, NominatimGeocoder, OsrmRouter
from crm_geo.services.rate_limiter import RateLimiter
from crm_geo.services.route_service import RouteService


class ApplicationContainer(containers.DeclarativeContainer):
    """DI container, constructed once per process"""

    # None when DATABASE_URL is not set -> memory-only cache
    session_factory = providers.Singleton(create_session_factory, database_url=settings.database_url)

    # Repositories
    geo_cache_repository = providers.Singleton(GeoCacheRepository, session_factory=session_factory)
    route_cache_repository = providers.Singleton(RouteCacheRepository, session_factory=session_factory)
    job_repository = providers.Singleton(JobRepository, session_factory=session_factory)

    # Process-wide state
    cache_store = providers.Singleton(
        CacheStore,
        geo_repository=geo_cache_repository,
        route_repository=route_cache_repository
    )
    rate_limiter = providers.Singleton(RateLimiter)

    # Provider clients (hold an aiohttp session)
    google_geocoder = providers.Singleton(GoogleGeocoder, api_key=settings.google_maps_server_api_key)
    nominatim_geocoder = providers.Singleton(NominatimGeocoder)
    osrm_router = providers.Singleton(OsrmRouter)

    # Services
    geocode_service = providers.Factory(
        GeocodeService,
        cache_store=cache_store,
        rate_limiter=rate_limiter,
        primary=google_geocoder,
        secondary=nominatim_geocoder
    )
    route_service = providers.Factory(
        RouteService,
        cache_store=cache_store,
        router=osrm_router
    )


container: ApplicationContainer = None


def init_container() -> ApplicationContainer:
    global container
    container = ApplicationContainer()
    return container


def get_container() -> ApplicationContainer:
    global container
    if container is None:
        container = init_container()
    return container


async def close_provider_clients(app_container: ApplicationContainer):
    """Close aiohttp sessions of the provider singletons"""
    for provider in (app_container.google_geocoder, app_container.nominatim_geocoder, app_container.osrm_router):
        await provider().close()
