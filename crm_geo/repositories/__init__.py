from .base_repository import BaseRepository
from .cache_repository import GeoCacheRepository, RouteCacheRepository
from .job_repository import JobRepository

__all__ = ['BaseRepository', 'GeoCacheRepository', 'RouteCacheRepository', 'JobRepository']
