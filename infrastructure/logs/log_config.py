from __future__ import annotations

import logging
import logging.handlers
import socket
from datetime import datetime
from pathlib import Path
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.configurator import Configurator, SettingsLocation

logger = logging.getLogger(__name__)

_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'fatal': logging.CRITICAL,
    'critical': logging.CRITICAL,
}

# marks handlers owned by LogConfig so re-running replaces them
_HANDLER_TAG = '_log_config_handler'


class LogFormatter(logging.Formatter):
    """``[time][level][host]message, key:value...``"""

    def __init__(self, time_format: str = '%Y-%m-%d %H:%M:%S.%f'):
        super().__init__()
        self.time_format = time_format
        self.host = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(self.time_format)[:23]
        line = f'[{timestamp:<23}][{record.levelname.lower():<6}][{self.host}]{record.getMessage()}'
        extra = getattr(record, 'fields', None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                line += f', {key}:{value}'
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


class LogConfig(Configurator, BaseModel):
    required: ClassVar[bool] = True
    run_without_settings: ClassVar[bool] = True

    file_name: str = Field(default='app.log', alias='fileName')
    dir: str = Field(default='resource/log')
    level: str = Field(default='info')
    max_size: int = Field(default=100, ge=1, alias='maxSize', description='Rotate after this many megabytes')
    max_backups: int = Field(default=10, ge=0, alias='maxBackups')
    console: bool = Field(default=True)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('level')
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.lower()
        if value not in _LEVELS:
            raise ValueError(f"Unknown log level '{value}', expected one of {sorted(_LEVELS)}")
        return value

    @classmethod
    def for_server(cls, server_name: str) -> 'LogConfig':
        return cls(file_name=f'{server_name}.log')

    @property
    def file_path(self) -> Path:
        return Path(self.dir) / self.file_name

    def format(self) -> str:
        return f'file={self.file_path} level={self.level} maxSize={self.max_size}MB maxBackups={self.max_backups}'

    def location(self) -> Optional[SettingsLocation]:
        return SettingsLocation(file_path='log.yaml', data_id='log.yaml')

    def execute(self) -> None:
        root = logging.getLogger()
        for handler in list(root.handlers):
            if getattr(handler, _HANDLER_TAG, False):
                root.removeHandler(handler)
                handler.close()

        formatter = LogFormatter()
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            self.file_path,
            maxBytes=self.max_size * 1024 * 1024,
            backupCount=self.max_backups,
            encoding='utf-8',
        )
        handlers = [file_handler]
        if self.console:
            handlers.append(logging.StreamHandler())
        for handler in handlers:
            handler.setFormatter(formatter)
            setattr(handler, _HANDLER_TAG, True)
            root.addHandler(handler)
        root.setLevel(_LEVELS[self.level])
        logger.info(f'Logging initialized: {self.format()}')
