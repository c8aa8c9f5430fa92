"""
Application configuration read in the first bootstrap phase.

``config.yaml`` carries the server identity plus optional inline settings for
the built-in subsystems. Inline subsystem settings are always multi-source
collections; per-subsystem files (``database.yaml`` ...) are read later by
the resolver when a slot is left empty.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.ports.naming_port import ServerInstance
from infrastructure.cache import MultiCacheConfig
from infrastructure.database import MultiDatabaseConfig
from infrastructure.kvstore import MultiRedisConfig
from infrastructure.logs import LogConfig
from infrastructure.nacos import NacosConfig

APP_CONFIG_FILE = 'config.yaml'


class ServerConfig(BaseModel):
    name: str = Field(default='app', description='Service name, also the remote config group')
    host: str = Field(default='', description='Empty means the local outbound address')
    port: int = Field(default=8888, ge=1, le=65535)
    prefix: str = Field(default='app', description='API path prefix')
    debug: bool = Field(default=False)

    def instance(self) -> ServerInstance:
        return ServerInstance(name=self.name, host=self.host, port=self.port)

    @property
    def http_url(self) -> str:
        return f'http://{self.host}:{self.port}'

    @property
    def api_prefix(self) -> str:
        prefix = self.prefix.strip('/')
        return f'/{prefix}' if prefix else ''


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    log: Optional[LogConfig] = None
    nacos: Optional[NacosConfig] = None
    database: Optional[MultiDatabaseConfig] = None
    redis: Optional[MultiRedisConfig] = None
    cache: Optional[MultiCacheConfig] = None

    model_config = ConfigDict(populate_by_name=True)

    def default_document(self) -> dict:
        """What gets written as ``config.yaml`` when none exists."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
