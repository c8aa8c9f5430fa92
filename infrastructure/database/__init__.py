from .database_config import DatabaseConfig, MultiDatabaseConfig
from .handler import DatabaseHandler

__all__ = ['DatabaseConfig', 'MultiDatabaseConfig', 'DatabaseHandler']
