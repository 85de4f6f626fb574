from .geocache import GeoCacheDB, RouteCacheDB
from .job import JobDB

__all__ = ['GeoCacheDB', 'RouteCacheDB', 'JobDB']
