from __future__ import annotations

import logging
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, RootModel, field_validator

from core.configurator import DEFAULT_SOURCE, Configurator, MultiConfigurator, SettingsLocation
from infrastructure.cache.client import JSON, YAML, CacheClient
from infrastructure.kvstore import redis_config

logger = logging.getLogger(__name__)

_LOCATION = SettingsLocation(file_path='cache.yaml', data_id='cache.yaml')


class CacheConfig(Configurator, BaseModel):
    run_without_settings: ClassVar[bool] = True

    source: str = Field(default=DEFAULT_SOURCE, description='redis source backing this cache')
    prefix: str = Field(default='cache')
    marshal: str = Field(default=JSON, description='json or yaml')

    @field_validator('marshal')
    @classmethod
    def validate_marshal(cls, v: str) -> str:
        v = (v or JSON).lower()
        if v not in (JSON, YAML):
            raise ValueError(f'marshal must be one of: {JSON}, {YAML}')
        return v

    def format(self) -> str:
        return f'source={self.source} prefix={self.prefix} marshal={self.marshal}'

    def location(self) -> Optional[SettingsLocation]:
        return _LOCATION

    def new_client(self) -> CacheClient:
        redis_client = redis_config.this().get_client(self.source)
        return CacheClient(redis_client, prefix=self.prefix, marshal=self.marshal)

    def execute(self) -> None:
        register(self, self.new_client(), primary=True)
        logger.info(f'cache init successfully: {self.format()}')


class MultiCacheConfig(MultiConfigurator, RootModel[List[CacheConfig]]):
    root: List[CacheConfig] = Field(default_factory=list)

    def location(self) -> Optional[SettingsLocation]:
        return _LOCATION

    def execute(self) -> None:
        if not self.root:
            # an empty cache.yaml still yields the default cache
            self.root = [CacheConfig()]
        primary = self.primary
        for config in self.root:
            register(config, config.new_client(), primary=config is primary)
            logger.info(f'cache init successfully: {config.format()}')


class CacheHandler:
    """Cache clients keyed by source."""

    def __init__(self) -> None:
        self.multi = False
        self.primary_source: Optional[str] = None
        self._clients: Dict[str, CacheClient] = {}
        self._configs: Dict[str, CacheConfig] = {}

    def add(self, config: CacheConfig, client: CacheClient, primary: bool = False) -> None:
        if self._clients:
            self.multi = True
        self._clients[config.source] = client
        self._configs[config.source] = config
        if primary or self.primary_source is None:
            self.primary_source = config.source

    def sources(self) -> List[str]:
        return list(self._clients)

    def get_client(self, source: Optional[str] = None) -> CacheClient:
        source = source or self.primary_source
        if source not in self._clients:
            raise KeyError(f"cache source '{source}' is not initialized")
        return self._clients[source]

    def get_config(self, source: Optional[str] = None) -> CacheConfig:
        return self._configs[source or self.primary_source]


_handler: Optional[CacheHandler] = None


def this() -> CacheHandler:
    if _handler is None:
        raise RuntimeError('cache is not initialized')
    return _handler


def initialized() -> bool:
    return _handler is not None and bool(_handler.sources())


def register(config: CacheConfig, client: CacheClient, primary: bool = False) -> CacheHandler:
    global _handler
    if _handler is None:
        _handler = CacheHandler()
    _handler.add(config, client, primary=primary)
    return _handler


def get_client(source: Optional[str] = None) -> CacheClient:
    return this().get_client(source)


def reset() -> None:
    global _handler
    _handler = None
