import logging
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Geocoding providers
    google_maps_server_api_key: Optional[str] = None  # server-side only, never sent to the browser
    google_geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    nominatim_search_url: str = "https://nominatim.openstreetmap.org/search"
    nominatim_user_agent: str = "OlamHatzipuyim-CRM/1.0"
    nominatim_country_codes: str = "il"

    # Routing
    osrm_route_url: str = "https://router.project-osrm.org/route/v1/driving"
    route_bucket_minutes: int = 30
    fallback_speed_kmh: float = 45.0
    fallback_min_duration_seconds: int = 60

    provider_timeout_seconds: float = 10.0

    # Database (memory-only cache when unset)
    database_url: Optional[str] = None

    # Rate limiting
    geocode_rate_limit: int = 40
    geocode_rate_window_seconds: float = 60.0

    log_level: str = "INFO"

    class Config:
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "allow"


settings = Settings()

logger = logging.getLogger(__name__)
if not settings.google_maps_server_api_key:
    logger.info("GOOGLE_MAPS_SERVER_API_KEY not set, geocoding will use Nominatim only")
if not settings.database_url:
    logger.info("DATABASE_URL not set, geo/route cache is memory-only")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for entry points (API, CLI scripts)."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
