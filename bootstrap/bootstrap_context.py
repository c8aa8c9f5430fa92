from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Set

from bootstrap.config.app_config import AppConfig
from core.config_monitor import ConfigMonitor, get_config_monitor
from core.configurator import Configurator
from core.tasks import TaskQueue
from domain.ports.naming_port import NamingPort
from domain.ports.remote_config_port import RemoteConfigPort
from domain.ports.server_port import Middleware, RouterLoader, ServerPort
from domain.ports.table_port import TableInitializerPort
from infrastructure.network import get_local_ip

DEFAULT_CONFIG_DIR = 'conf'


class Switch(str, Enum):
    ENABLE_QUEUE = 'enable_queue'
    ENABLE_NACOS = 'enable_nacos'
    MULTI_DATABASE = 'multi_database'
    MULTI_REDIS = 'multi_redis'
    MULTI_CACHE = 'multi_cache'
    ENABLE_DEBUG = 'enable_debug'
    CUSTOM_PORT = 'custom_port'
    RUNNING = 'running'


class EngineState(IntEnum):
    """Lifecycle tag; each phase moves the engine exactly one step forward."""
    UNCONFIGURED = 0
    CONFIG_LOADED = 1
    BASIC_SUBSYSTEMS_INIT = 2
    CUSTOM_CONFIGURATORS_RUN = 3
    CUSTOM_FUNCTIONS_RUN = 4
    SERVER_STARTED = 5


@dataclass
class BootstrapContext:
    """Everything the phases share: switches, resolved config, registrations and collaborators."""
    switches: Set[Switch] = field(default_factory=set)
    config_dir: str = DEFAULT_CONFIG_DIR
    config: AppConfig = field(default_factory=AppConfig)
    state: EngineState = EngineState.UNCONFIGURED

    custom_funcs: List[Callable[[], Any]] = field(default_factory=list)
    configurators: List[Configurator] = field(default_factory=list)
    middlewares: List[Middleware] = field(default_factory=list)
    routers: List[RouterLoader] = field(default_factory=list)
    tables: Dict[str, List[Any]] = field(default_factory=dict)
    queue: Optional[TaskQueue] = None

    remote_config: Optional[RemoteConfigPort] = None
    naming: Optional[NamingPort] = None
    server: Optional[ServerPort] = None
    table_initializer: Optional[TableInitializerPort] = None
    local_ip: Callable[[], str] = get_local_ip
    monitor: ConfigMonitor = field(default_factory=get_config_monitor)
    shutdown_event: threading.Event = field(default_factory=threading.Event)

    def enabled(self, switch: Switch) -> bool:
        return switch in self.switches

    def enable(self, *switches: Switch) -> None:
        self.switches.update(switches)

    def disable(self, *switches: Switch) -> None:
        self.switches.difference_update(switches)

    @property
    def debug(self) -> bool:
        return self.enabled(Switch.ENABLE_DEBUG)

    @property
    def remote_enabled(self) -> bool:
        return self.enabled(Switch.ENABLE_NACOS) and self.remote_config is not None

    def get_config_path(self, filename: str) -> str:
        return os.path.join(self.config_dir, filename)
