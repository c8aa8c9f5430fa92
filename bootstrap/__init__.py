# bootstrap/__init__.py
from __future__ import annotations

from .exceptions import *
from .bootstrap_context import BootstrapContext, EngineState, Switch
from .config import AppConfig, ConfigLoader, ServerConfig
from .engine import BootstrapEngine, get_engine, new_engine, reset_engine
from .phases import BootstrapPhase, PhaseResult
from .processors import ConfiguratorResolver, SubsystemFamily

__version__ = '1.0.0'
__description__ = 'Process bootstrap engine'

__all__ = [
    'BootstrapEngine', 'new_engine', 'get_engine', 'reset_engine',
    'BootstrapContext', 'EngineState', 'Switch',
    'AppConfig', 'ServerConfig', 'ConfigLoader',
    'BootstrapPhase', 'PhaseResult',
    'ConfiguratorResolver', 'SubsystemFamily',
    '__version__', '__description__',
    'BootstrapError', 'EngineAlreadyRunningError', 'PhaseOrderError', 'ConfigurationError',
    'SettingsNotFoundError', 'ConfiguratorExecutionError', 'InstanceRegistrationError',
    'TableInitializationError', 'ServerStartError',
]
