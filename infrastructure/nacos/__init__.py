from .client import NacosClient, RemoteConfigError
from .nacos_config import CONFIG_AND_NAMING, ONLY_CONFIG, ONLY_NAMING, NacosConfig

__all__ = ['NacosClient', 'RemoteConfigError', 'NacosConfig', 'ONLY_CONFIG', 'ONLY_NAMING', 'CONFIG_AND_NAMING']
