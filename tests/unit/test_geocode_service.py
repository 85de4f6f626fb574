"""
Tests for the geocode resolver
"""
import asyncio
import pytest

from crm_geo.application.dto import GeoCacheEntry, MissReason, ProviderMiss
from crm_geo.services.cache_store import address_hash
from crm_geo.services.geocode_service import GeocodeService, geocode_with_providers
from crm_geo.utils.errors import InvalidInputError, NotFoundError, ProviderError, RateLimitedError

ADDRESS = "הרצל 10, אשדוד"
PROVIDER_ERROR = ProviderMiss(reason=MissReason.PROVIDER_ERROR, detail="HTTP 500")


@pytest.fixture
def make_service(memory_cache_store, rate_limiter):
    def _make(primary=None, secondary=None, rate_limit=40):
        return GeocodeService(
            memory_cache_store,
            rate_limiter,
            primary=primary,
            secondary=secondary,
            rate_limit=rate_limit,
            rate_window_seconds=60
        )
    return _make


@pytest.mark.unit
class TestGeocodeService:
    def test_secondary_hit_then_cache(self, make_service, make_geocoder, memory_cache_store):
        google = make_geocoder("google", is_configured=False)
        nominatim = make_geocoder("nominatim")
        nominatim.results[ADDRESS] = nominatim.hit(31.79, 34.65, "הרצל 10, אשדוד, ישראל")
        service = make_service(google, nominatim)

        first = asyncio.run(service.geocode(ADDRESS))

        assert first.provider == "nominatim"
        assert (first.lat, first.lng) == (31.79, 34.65)
        assert first.resolved_address == "הרצל 10, אשדוד, ישראל"
        assert google.calls == []
        cached = asyncio.run(memory_cache_store.get_geo_cache_by_hash(address_hash(ADDRESS)))
        assert cached.provider == "nominatim"

        second = asyncio.run(service.geocode("  הרצל   10,  אשדוד "))

        assert second.provider == "cache"
        assert (second.lat, second.lng) == (31.79, 34.65)
        assert nominatim.calls == [ADDRESS]

    def test_primary_error_falls_through_to_secondary(self, make_service, make_geocoder, memory_cache_store):
        google = make_geocoder("google", default=PROVIDER_ERROR)
        nominatim = make_geocoder("nominatim")
        nominatim.results[ADDRESS] = nominatim.hit(31.79, 34.65)
        service = make_service(google, nominatim)

        result = asyncio.run(service.geocode(ADDRESS))

        assert result.provider == "nominatim"
        assert len(google.calls) == 3
        assert result.resolved_address == ADDRESS
        assert asyncio.run(memory_cache_store.get_geo_cache_by_hash(address_hash(ADDRESS))) is not None

    def test_primary_hit_on_country_variant(self, make_service, make_geocoder):
        google = make_geocoder("google")
        google.results[f"{ADDRESS}, ישראל"] = google.hit(31.8, 34.66, "Herzl St 10, Ashdod, Israel")
        nominatim = make_geocoder("nominatim")
        service = make_service(google, nominatim)

        result = asyncio.run(service.geocode(ADDRESS))

        assert result.provider == "google"
        assert result.normalized_address == "Herzl St 10, Ashdod, Israel"
        assert google.calls == [ADDRESS, f"{ADDRESS}, ישראל"]
        assert nominatim.calls == []

    def test_unusable_cache_entry_is_ignored(self, make_service, make_geocoder, memory_cache_store):
        asyncio.run(memory_cache_store.upsert_geo_cache(
            address_hash(ADDRESS), GeoCacheEntry(normalized_address=ADDRESS, lat=0, lng=0, provider="google")
        ))
        nominatim = make_geocoder("nominatim")
        nominatim.results[ADDRESS] = nominatim.hit(31.79, 34.65)
        service = make_service(None, nominatim)

        result = asyncio.run(service.geocode(ADDRESS))

        assert result.provider == "nominatim"
        assert nominatim.calls == [ADDRESS]

    def test_not_found(self, make_service, make_geocoder):
        service = make_service(make_geocoder("google"), make_geocoder("nominatim"))

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(service.geocode("כתובת שלא קיימת 999"))
        assert exc_info.value.status_code == 404

    def test_provider_error_wins_over_not_found(self, make_service, make_geocoder):
        service = make_service(make_geocoder("google", default=PROVIDER_ERROR), make_geocoder("nominatim"))

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(service.geocode(ADDRESS))
        assert exc_info.value.status_code == 502

    @pytest.mark.parametrize("address", ["", "   ", None])
    def test_empty_address(self, make_service, make_geocoder, address):
        nominatim = make_geocoder("nominatim")
        service = make_service(None, nominatim)

        with pytest.raises(InvalidInputError):
            asyncio.run(service.geocode(address))
        assert nominatim.calls == []

    def test_rate_limited_after_limit(self, make_service, make_geocoder):
        service = make_service(None, make_geocoder("nominatim"), rate_limit=40)

        for i in range(40):
            with pytest.raises(NotFoundError):
                asyncio.run(service.geocode(f"רחוב {i}, עיר", client_ip="10.0.0.1"))

        with pytest.raises(RateLimitedError) as exc_info:
            asyncio.run(service.geocode("רחוב 41, עיר", client_ip="10.0.0.1"))
        assert exc_info.value.retry_after_seconds >= 1
        assert exc_info.value.status_code == 429

        with pytest.raises(NotFoundError):
            asyncio.run(service.geocode("רחוב 41, עיר", client_ip="10.0.0.2"))

    def test_cache_hits_are_not_rate_limited(self, make_service, make_geocoder):
        nominatim = make_geocoder("nominatim")
        nominatim.results[ADDRESS] = nominatim.hit(31.79, 34.65)
        service = make_service(None, nominatim, rate_limit=1)

        asyncio.run(service.geocode(ADDRESS, client_ip="10.0.0.1"))
        for _ in range(5):
            assert asyncio.run(service.geocode(ADDRESS, client_ip="10.0.0.1")).provider == "cache"

        with pytest.raises(RateLimitedError):
            asyncio.run(service.geocode("ביאליק 5, רמת גן", client_ip="10.0.0.1"))


@pytest.mark.unit
class TestGeocodeWithProviders:
    def test_reports_error_flag_with_hit(self, make_geocoder):
        failing = make_geocoder("google", default=PROVIDER_ERROR)
        working = make_geocoder("nominatim")
        working.results["q"] = working.hit(32.0, 34.8)

        hit, had_error = asyncio.run(geocode_with_providers(["q"], [failing, working]))

        assert hit.provider == "nominatim"
        assert had_error is True

    def test_skips_missing_and_unconfigured(self, make_geocoder):
        unconfigured = make_geocoder("google", is_configured=False)

        hit, had_error = asyncio.run(geocode_with_providers(["q"], [None, unconfigured]))

        assert hit is None
        assert had_error is False
        assert unconfigured.calls == []
