from .redis_config import CLUSTER, STANDALONE, MultiRedisConfig, RedisConfig, RedisHandler

__all__ = ['RedisConfig', 'MultiRedisConfig', 'RedisHandler', 'STANDALONE', 'CLUSTER']
