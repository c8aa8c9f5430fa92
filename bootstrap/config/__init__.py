# bootstrap/config/__init__.py
"""
Bootstrap Configuration Module

Application config model and the loader used by the config phase.
"""

from .app_config import APP_CONFIG_FILE, AppConfig, ServerConfig
from .config_loader import ConfigLoader

__all__ = ['APP_CONFIG_FILE', 'AppConfig', 'ServerConfig', 'ConfigLoader']
