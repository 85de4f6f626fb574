from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float, UniqueConstraint
from crm_geo.database.connection import Base


class GeoCacheDB(Base):
    """Persistent geocode cache, keyed by the address hash"""
    __tablename__ = "geo_cache"

    address_hash = Column(String(64), primary_key=True)  # sha256 of lower-cased normalized text
    normalized_address = Column(String, nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    provider = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RouteCacheDB(Base):
    """Persistent route cache, keyed by rounded endpoints and departure bucket"""
    __tablename__ = "route_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    origin_lat = Column(Float, nullable=False)
    origin_lng = Column(Float, nullable=False)
    dest_lat = Column(Float, nullable=False)
    dest_lng = Column(Float, nullable=False)
    departure_bucket = Column(String, nullable=False)  # ISO-8601, floored to the bucket boundary
    duration_seconds = Column(Integer, nullable=False)
    distance_meters = Column(Integer, nullable=False)
    provider = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint(
            'origin_lat', 'origin_lng', 'dest_lat', 'dest_lng', 'departure_bucket',
            name='uq_route_cache_key'
        ),
    )

    @classmethod
    def conflict_columns(cls):
        return ['origin_lat', 'origin_lng', 'dest_lat', 'dest_lng', 'departure_bucket']
