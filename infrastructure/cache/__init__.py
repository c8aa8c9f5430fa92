from .cache_config import CacheConfig, CacheHandler, MultiCacheConfig, get_client
from .client import CacheClient

__all__ = ['CacheConfig', 'MultiCacheConfig', 'CacheHandler', 'CacheClient', 'get_client']
