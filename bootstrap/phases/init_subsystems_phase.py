from __future__ import annotations

from typing import List

from bootstrap.bootstrap_context import BootstrapContext, EngineState, Switch
from bootstrap.exceptions import TableInitializationError
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.processors import ConfiguratorResolver, SubsystemFamily
from infrastructure.cache import CacheConfig, MultiCacheConfig
from infrastructure.database import DatabaseConfig, MultiDatabaseConfig
from infrastructure.database import handler as database_handler
from infrastructure.kvstore import MultiRedisConfig, RedisConfig
from infrastructure.kvstore import redis_config
from infrastructure.logs import LogConfig

DATABASE = SubsystemFamily('database', DatabaseConfig, MultiDatabaseConfig, Switch.MULTI_DATABASE)
REDIS = SubsystemFamily('redis', RedisConfig, MultiRedisConfig, Switch.MULTI_REDIS)
CACHE = SubsystemFamily('cache', CacheConfig, MultiCacheConfig, Switch.MULTI_CACHE)


class InitSubsystemsPhase(BootstrapPhase):
    """
    Built-in subsystems in fixed order: logging (required), database,
    table structures, redis and cache. Cache is skipped unless redis came up.
    """

    task_name = 'init_inner_config'
    entry_state = EngineState.CONFIG_LOADED
    exit_state = EngineState.BASIC_SUBSYSTEMS_INIT

    def execute(self, context: BootstrapContext) -> PhaseResult:
        resolver = ConfiguratorResolver(context)
        warnings: List[str] = []

        log = context.config.log or LogConfig.for_server(context.config.server.name)
        resolver.resolve(log, required=True)
        context.config.log = log

        resolver.resolve_family(DATABASE)
        warnings.extend(self._init_tables(context))
        resolver.resolve_family(REDIS)

        if redis_config.initialized():
            resolver.resolve_family(CACHE)
        else:
            warnings.append("Cache skipped: redis is not initialized")

        return PhaseResult.success_result(
            message="Built-in subsystems initialized",
            warnings=warnings,
            metadata={
                'database': database_handler.initialized(),
                'redis': redis_config.initialized(),
            },
        )

    def _init_tables(self, context: BootstrapContext) -> List[str]:
        if not context.tables:
            return []
        initializer = context.table_initializer
        if initializer is None:
            if not database_handler.initialized():
                return ["Table initialization skipped: database is not initialized"]
            initializer = database_handler.this()

        warnings = []
        sources = set(initializer.sources())
        for source, tables in context.tables.items():
            if source not in sources:
                warnings.append(f"Tables of source '{source}' skipped: source is not connected")
                continue
            try:
                initializer.init_tables(source, tables)
            except Exception as e:
                raise TableInitializationError(f"Failed to init table struct and data: {e}",
                                               component_id=source, phase=self.phase_name) from e
        return warnings
