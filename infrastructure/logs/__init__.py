from .log_config import LogConfig, LogFormatter

__all__ = ['LogConfig', 'LogFormatter']
