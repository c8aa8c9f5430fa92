from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from bootstrap.config.app_config import APP_CONFIG_FILE, AppConfig
from bootstrap.exceptions import ConfigurationError
from configs.codec import CodecError, read_file, write_file

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Reads the application config file, writing a default one on first run."""

    def __init__(self, config_dir: Union[str, Path], filename: str = APP_CONFIG_FILE):
        self.path = Path(config_dir) / filename

    def load_app_config(self) -> AppConfig:
        if not self.path.exists():
            config = AppConfig()
            self._write_default(config)
            return config

        try:
            data = read_file(self.path)
        except (OSError, CodecError) as e:
            raise ConfigurationError(f'Failed to read application config {self.path}: {e}') from e

        try:
            config = AppConfig.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(f'Invalid application config {self.path}: {e}') from e

        logger.info(f'Application config loaded from {self.path}')
        return config

    def _write_default(self, config: AppConfig) -> None:
        try:
            write_file(self.path, config.default_document())
        except (OSError, CodecError) as e:
            raise ConfigurationError(f'Failed to write default application config {self.path}: {e}') from e
        logger.info(f'Application config not found, default written to {self.path}')
