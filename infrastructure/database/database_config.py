from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from core.configurator import DEFAULT_SOURCE, Configurator, MultiConfigurator, SettingsLocation
from infrastructure.database import handler

logger = logging.getLogger(__name__)

MYSQL = 'mysql'
POSTGRES = 'postgres'
PGSQL = 'pgsql'
SQLITE = 'sqlite'

_DRIVERS = {
    MYSQL: 'mysql+pymysql',
    POSTGRES: 'postgresql+psycopg2',
    PGSQL: 'postgresql+psycopg2',
    SQLITE: 'sqlite',
}

_LOCATION = SettingsLocation(file_path='database.yaml', data_id='database.yaml')


class DatabaseConfig(Configurator, BaseModel):
    source: str = Field(default=DEFAULT_SOURCE)
    enable: bool = Field(default=False)
    type: str = Field(default='', description='mysql, postgres/pgsql or sqlite')
    host: str = Field(default='localhost')
    port: int = Field(default=0)
    username: str = Field(default='')
    password: str = Field(default='')
    database: str = Field(default='')
    db_schema: str = Field(default='', alias='schema')
    debug: bool = Field(default=False)
    max_idle_conns: int = Field(default=10, ge=1, alias='maxIdleConns')
    max_open_conns: int = Field(default=10, ge=1, alias='maxOpenConns')
    conn_max_lifetime: int = Field(default=10, ge=1, alias='connMaxLifetime', description='minutes')

    model_config = ConfigDict(populate_by_name=True)

    def format(self) -> str:
        return (f'source={self.source} type={self.type} host={self.host} port={self.port} '
                f'database={self.database} debug={self.debug}')

    def location(self) -> Optional[SettingsLocation]:
        return _LOCATION

    def url(self) -> URL:
        db_type = self.type.lower()
        if db_type not in _DRIVERS:
            raise ValueError(f"database type only support: {', '.join(sorted(_DRIVERS))}, got '{self.type}'")
        if db_type == SQLITE:
            return URL.create(_DRIVERS[db_type], database=self.database or None)
        return URL.create(
            _DRIVERS[db_type],
            username=self.username or None,
            password=self.password or None,
            host=self.host,
            port=self.port or None,
            database=self.database or None,
        )

    def new_engine(self) -> Engine:
        kwargs: Dict[str, Any] = {'echo': self.debug}
        if self.type.lower() != SQLITE:
            kwargs.update(
                pool_size=self.max_idle_conns,
                max_overflow=max(self.max_open_conns - self.max_idle_conns, 0),
                pool_recycle=self.conn_max_lifetime * 60,
                pool_pre_ping=True,
            )
            if self.db_schema and self.type.lower() in (POSTGRES, PGSQL):
                kwargs['connect_args'] = {'options': f'-csearch_path={self.db_schema}'}
        return create_engine(self.url(), **kwargs)

    def execute(self) -> None:
        if not self.enable:
            logger.info('database not connected! reason: database.yaml is empty or the value of enable is false')
            return
        handler.register(self, self.new_engine(), primary=True)
        logger.info(f'database connect successfully: {self.format()}')


class MultiDatabaseConfig(MultiConfigurator, RootModel[List[DatabaseConfig]]):
    root: List[DatabaseConfig] = Field(default_factory=list)

    def location(self) -> Optional[SettingsLocation]:
        return _LOCATION

    def execute(self) -> None:
        if not self.root:
            raise ValueError('database not connected! cause: database.yaml is invalid')
        enabled = [c for c in self.root if c.enable]
        if not enabled:
            raise ValueError('database not connected! cause: no enabled database configured')
        primary = self.primary
        for config in enabled:
            handler.register(config, config.new_engine(), primary=config is primary)
            logger.info(f'database connect successfully: {config.format()}')
