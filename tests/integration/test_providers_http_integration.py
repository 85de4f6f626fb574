"""
Integration tests for provider clients against a local HTTP server answering 500
"""
import asyncio
import pytest
from aiohttp import web
from aiohttp import test_utils

from crm_geo.services.geocode_service import GeocodeService
from crm_geo.services.providers import GoogleGeocoder, NominatimGeocoder, OsrmRouter
from crm_geo.services.rate_limiter import RateLimiter
from crm_geo.services.route_service import RouteService
from crm_geo.utils.errors import ProviderError


async def _with_failing_server(scenario):
    """Run ``scenario(server, requests)`` while every request gets HTTP 500"""
    requests = []

    async def internal_error(request: web.Request) -> web.Response:
        requests.append(request.path)
        return web.Response(status=500, text="Internal Server Error")

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", internal_error)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        return await scenario(server, requests)
    finally:
        await server.close()


@pytest.mark.integration
class TestProvidersHttpErrors:
    def test_route_falls_back_on_http_500(self, memory_cache_store):
        async def scenario(server, requests):
            async with OsrmRouter(url=str(server.make_url("/route/v1/driving"))) as router:
                service = RouteService(memory_cache_store, router, bucket_minutes=30)
                result = await service.route(
                    {"lat": 32.0853, "lng": 34.7818}, {"lat": 32.05, "lng": 34.76}, "2026-02-13T08:10:00Z"
                )
            return result, requests

        result, requests = asyncio.run(_with_failing_server(scenario))

        assert result.provider == "fallback"
        assert result.duration_seconds >= 60
        assert result.distance_meters > 0
        assert requests == ["/route/v1/driving/34.7818,32.0853;34.76,32.05"]

    def test_geocode_reports_provider_error_on_http_500(self, memory_cache_store):
        async def scenario(server, requests):
            async with GoogleGeocoder(api_key="key", url=str(server.make_url("/geocode/json"))) as google, \
                    NominatimGeocoder(url=str(server.make_url("/search"))) as nominatim:
                service = GeocodeService(memory_cache_store, RateLimiter(), primary=google, secondary=nominatim)
                with pytest.raises(ProviderError):
                    await service.geocode("הרצל 10, אשדוד")
            return requests

        requests = asyncio.run(_with_failing_server(scenario))

        assert requests.count("/geocode/json") == 3
        assert requests.count("/search") == 3
