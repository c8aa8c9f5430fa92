from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import redis
from pydantic import BaseModel, ConfigDict, Field, RootModel
from redis.cluster import ClusterNode, RedisCluster

from core.configurator import DEFAULT_SOURCE, Configurator, MultiConfigurator, SettingsLocation

logger = logging.getLogger(__name__)

STANDALONE = 0
CLUSTER = 1

_LOCATION = SettingsLocation(file_path='redis.yaml', data_id='redis.yaml')


class RedisConfig(Configurator, BaseModel):
    source: str = Field(default=DEFAULT_SOURCE)
    enable: bool = Field(default=False)
    mode: int = Field(default=STANDALONE, ge=STANDALONE, le=CLUSTER, description='0 standalone, 1 cluster')
    host: str = Field(default='localhost', description='Comma separated hosts in cluster mode')
    port: int = Field(default=6379)
    password: str = Field(default='')
    database: int = Field(default=0, ge=0)
    pool_size: int = Field(default=10, ge=1, alias='poolSize')

    model_config = ConfigDict(populate_by_name=True)

    def format(self) -> str:
        return (f'source={self.source} mode={self.mode} host={self.host} '
                f'port={self.port} database={self.database}')

    def location(self) -> Optional[SettingsLocation]:
        return _LOCATION

    def address(self) -> str:
        return f'{self.host}:{self.port}'

    def nodes(self) -> List[Tuple[str, int]]:
        nodes = []
        for item in self.host.split(','):
            item = item.strip()
            if not item:
                continue
            host, _, port = item.partition(':')
            nodes.append((host, int(port) if port else self.port))
        return nodes

    def new_client(self, database: Optional[int] = None) -> Any:
        password = self.password or None
        if self.mode == CLUSTER:
            return RedisCluster(
                startup_nodes=[ClusterNode(host, port) for host, port in self.nodes()],
                password=password,
                max_connections=self.pool_size,
            )
        return redis.Redis(
            host=self.host,
            port=self.port,
            password=password,
            db=self.database if database is None else database,
            max_connections=self.pool_size,
        )

    def connect(self) -> Any:
        client = self.new_client()
        try:
            client.ping()
        except redis.RedisError:
            logger.error(f'redis connect failed: {self.format()}')
            raise
        return client

    def execute(self) -> None:
        if not self.enable:
            logger.info('redis not connected! reason: redis.yaml is empty or the value of enable is false')
            return
        register(self, self.connect(), primary=True)
        logger.info(f'redis connect successfully: {self.format()}')


class MultiRedisConfig(MultiConfigurator, RootModel[List[RedisConfig]]):
    root: List[RedisConfig] = Field(default_factory=list)

    def location(self) -> Optional[SettingsLocation]:
        return _LOCATION

    def execute(self) -> None:
        if not self.root:
            raise ValueError('redis not connected! cause: redis.yaml is invalid')
        enabled = [c for c in self.root if c.enable]
        if not enabled:
            raise ValueError('redis not connected! cause: no enabled redis configured')
        primary = self.primary
        for config in enabled:
            register(config, config.connect(), primary=config is primary)
            logger.info(f'redis connect successfully: {config.format()}')


class RedisHandler:
    """Connected redis clients keyed by source."""

    def __init__(self) -> None:
        self.multi = False
        self.primary_source: Optional[str] = None
        self._clients: Dict[str, Any] = {}
        self._configs: Dict[str, RedisConfig] = {}

    def add(self, config: RedisConfig, client: Any, primary: bool = False) -> None:
        if self._clients:
            self.multi = True
        self._clients[config.source] = client
        self._configs[config.source] = config
        if primary or self.primary_source is None:
            self.primary_source = config.source

    def sources(self) -> List[str]:
        return list(self._clients)

    def get_client(self, source: Optional[str] = None) -> Any:
        source = source or self.primary_source
        if source not in self._clients:
            raise KeyError(f"redis source '{source}' is not connected")
        return self._clients[source]

    def get_config(self, source: Optional[str] = None) -> RedisConfig:
        return self._configs[source or self.primary_source]

    def close(self) -> None:
        for client in self._clients.values():
            try:
                client.close()
            except redis.RedisError as e:
                logger.warning(f'close redis client failed: {e}')


_handler: Optional[RedisHandler] = None


def this() -> RedisHandler:
    if _handler is None:
        raise RuntimeError('redis is not initialized')
    return _handler


def initialized() -> bool:
    return _handler is not None and bool(_handler.sources())


def register(config: RedisConfig, client: Any, primary: bool = False) -> RedisHandler:
    global _handler
    if _handler is None:
        _handler = RedisHandler()
    _handler.add(config, client, primary=primary)
    return _handler


def reset() -> None:
    global _handler
    if _handler is not None:
        _handler.close()
    _handler = None
