from __future__ import annotations

import logging
from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from core.configurator import Configurator
from domain.ports.naming_port import NamingPort
from domain.ports.remote_config_port import RemoteConfigPort
from infrastructure.nacos.client import NacosClient

logger = logging.getLogger(__name__)

ONLY_CONFIG = 0
ONLY_NAMING = 1
CONFIG_AND_NAMING = 2


class NacosConfig(Configurator, BaseModel):
    """Access settings for the config/naming service; read from the application config file."""
    required: ClassVar[bool] = True
    run_without_settings: ClassVar[bool] = True

    address: str = Field(default='127.0.0.1:8848', description='Comma separated host:port list')
    username: str = Field(default='nacos')
    password: str = Field(default='nacos')
    namespace: str = Field(default='public', alias='nameSpace')
    mode: int = Field(default=CONFIG_AND_NAMING, ge=ONLY_CONFIG, le=CONFIG_AND_NAMING,
                      description='0 config only, 1 naming only, 2 config and naming')

    model_config = ConfigDict(populate_by_name=True)

    _client: Optional[NacosClient] = PrivateAttr(default=None)

    def format(self) -> str:
        return (f'address={self.address_url()} username={self.username} '
                f'nameSpace={self.namespace} mode={self.mode}')

    def address_url(self) -> str:
        return ','.join(f'{server}/nacos' for server in self.servers())

    def servers(self) -> List[str]:
        return [s.strip() for s in self.address.split(',') if s.strip()]

    @property
    def enable_config(self) -> bool:
        return self.mode in (ONLY_CONFIG, CONFIG_AND_NAMING)

    @property
    def enable_naming(self) -> bool:
        return self.mode in (ONLY_NAMING, CONFIG_AND_NAMING)

    def new_client(self) -> NacosClient:
        return NacosClient(
            servers=self.servers(),
            username=self.username,
            password=self.password,
            namespace=self.namespace,
        )

    def execute(self) -> None:
        if self._client is None:
            self._client = self.new_client()
        logger.info(f'nacos connect successfully: {self.format()}')

    @property
    def config_client(self) -> Optional[RemoteConfigPort]:
        return self._client if self.enable_config else None

    @property
    def naming_client(self) -> Optional[NamingPort]:
        if not self.enable_naming:
            return None
        if self._client is None:
            self._client = self.new_client()
        return self._client
