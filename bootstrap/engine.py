"""
Bootstrap engine.

One engine per process, created through :func:`new_engine`. Callers register
their configurators, functions, routers, middlewares and tables, then call
:meth:`BootstrapEngine.run`, which drives the five phases either directly or
through a task queue (``Switch.ENABLE_QUEUE``). Once the engine is running,
every mutator raises :class:`EngineAlreadyRunningError`.

Example::

    engine = new_engine(Switch.ENABLE_DEBUG)
    engine.add_router(load_user_routes)
    engine.add_queue_task(warm_up_cache, 'warm_up_cache')
    engine.run()
"""
from __future__ import annotations

import logging
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from bootstrap.bootstrap_context import DEFAULT_CONFIG_DIR, BootstrapContext, EngineState, Switch
from bootstrap.exceptions import ConfigurationError, EngineAlreadyRunningError
from bootstrap.phases import (BootstrapPhase, InitSubsystemsPhase, LoadConfigPhase, RunConfiguratorsPhase,
                              RunCustomFunctionsPhase, StartServerPhase, default_phases)
from bootstrap.processors import ConfiguratorResolver
from configs.codec import CodecError, decode, read_file, unmarshal_into
from core.configurator import DEFAULT_SOURCE, Configurator
from core.tasks import TaskQueue
from domain.ports.server_port import Middleware, RouterLoader

logger = logging.getLogger(__name__)

__all__ = ['BootstrapEngine', 'Switch', 'EngineState', 'new_engine', 'get_engine', 'reset_engine']

TASK_INIT_APP_CONFIG = LoadConfigPhase.task_name
TASK_INIT_INNER_CONFIG = InitSubsystemsPhase.task_name
TASK_INIT_OUTER_CONFIG = RunConfiguratorsPhase.task_name
TASK_RUN_CUSTOM_FUNCTION = RunCustomFunctionsPhase.task_name
TASK_START_SERVER = StartServerPhase.task_name


class BootstrapEngine:

    def __init__(self, *switches: Switch, config_dir: Union[str, Path] = DEFAULT_CONFIG_DIR,
                 phases: Optional[List[BootstrapPhase]] = None, **collaborators: Any):
        self.context = BootstrapContext(switches=set(switches), config_dir=str(config_dir), **collaborators)
        self.phases = phases if phases is not None else default_phases()
        self._enable_queue()

    # ------------------------------------------------------------------ #
    # state
    # ------------------------------------------------------------------ #
    @property
    def config(self):
        return self.context.config

    @property
    def state(self) -> EngineState:
        return self.context.state

    @property
    def running(self) -> bool:
        return self.context.enabled(Switch.RUNNING)

    @property
    def queue(self) -> Optional[TaskQueue]:
        return self.context.queue

    def _check_running(self) -> None:
        if self.running:
            raise EngineAlreadyRunningError()

    def _enable_queue(self) -> None:
        if self.context.enabled(Switch.ENABLE_QUEUE) and self.context.queue is None:
            queue = TaskQueue()
            for phase in self.phases:
                queue.add(phase.task_name, partial(phase.execute_with_hooks, self.context))
            self.context.queue = queue

    # ------------------------------------------------------------------ #
    # run
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        """
        Bootstrap the process. Blocks while the server serves.

        In queue mode a failing task raises ``TaskExecutionError`` and stays
        queued; otherwise phase errors propagate as they are. Phases that
        already completed are not run again.
        """
        self._check_running()
        if self.context.enabled(Switch.ENABLE_QUEUE):
            self.context.queue.execute()
        else:
            for phase in self.phases:
                if self.context.state < phase.exit_state:
                    phase.execute_with_hooks(self.context)
        self.context.enable(Switch.RUNNING)

    def shutdown(self) -> None:
        """Stop the server and release a phase waiting after a server fault."""
        server = self.context.server
        stop = getattr(server, 'shutdown', None)
        if callable(stop):
            stop()
        self.context.shutdown_event.set()

    # ------------------------------------------------------------------ #
    # registration
    # ------------------------------------------------------------------ #
    def set_switches(self, *switches: Switch) -> None:
        self._check_running()
        self.context.enable(*switches)
        self._enable_queue()

    def set_config_dir(self, config_dir: Union[str, Path]) -> None:
        self._check_running()
        self.context.config_dir = str(config_dir)

    def get_config_path(self, filename: str) -> str:
        return self.context.get_config_path(filename)

    def add_custom_func(self, *funcs: Callable[[], Any]) -> None:
        self._check_running()
        self.context.custom_funcs.extend(f for f in funcs if f is not None)

    def add_configurator(self, *configurators: Configurator) -> None:
        self._check_running()
        self.context.configurators.extend(c for c in configurators if c is not None)

    def add_middleware(self, *middlewares: Middleware) -> None:
        self._check_running()
        self.context.middlewares.extend(m for m in middlewares if m is not None)

    def add_router(self, *routers: RouterLoader) -> None:
        self._check_running()
        self.context.routers.extend(r for r in routers if r is not None)

    def add_table(self, *tables: Any) -> None:
        self.add_source_table(DEFAULT_SOURCE, *tables)

    def add_source_table(self, source: str, *tables: Any) -> None:
        self._check_running()
        if tables:
            self.context.tables.setdefault(source, []).extend(tables)

    def add_queue_task(self, task: Callable[[], Any], name: str) -> None:
        """Queue ``task`` right before the server starts; switches the engine to queue mode."""
        self._check_running()
        if not name:
            logger.error('add queue task failed, cause: the task name is required')
            return
        self.context.enable(Switch.ENABLE_QUEUE)
        self._enable_queue()
        self.context.queue.add_before(name, task, TASK_START_SERVER)
        logger.info(f'add queue task successfully, task name: {name}')

    # ------------------------------------------------------------------ #
    # configuration helpers
    # ------------------------------------------------------------------ #
    def execute_configurator(self, configurator: Configurator, must_run: Optional[bool] = None) -> bool:
        self._check_running()
        return ConfiguratorResolver(self.context).resolve(configurator, must_run=must_run)

    def load_local_config(self, target: Any, path: Union[str, Path]) -> None:
        """Decode the file at ``path`` into ``target`` right away."""
        try:
            unmarshal_into(target, read_file(path))
        except (OSError, CodecError) as e:
            raise ConfigurationError(f'Failed to load local config {path}: {e}') from e

    def load_remote_config(self, target: Any, data_id: str, listen: bool = False) -> None:
        """Decode a remote settings document into ``target`` once the custom functions run."""
        context = self.context

        def load() -> None:
            remote = context.remote_config
            if remote is None or not context.enabled(Switch.ENABLE_NACOS):
                raise ConfigurationError(f'Remote config client is not initialized, cannot load {data_id}')
            group = context.config.server.name
            try:
                content = remote.get_config(group, data_id)
                unmarshal_into(target, decode(content, data_id))
            except Exception as e:
                raise ConfigurationError(f'Failed to load remote config group={group} dataId={data_id}: {e}') from e
            if listen:
                context.monitor.set(group, data_id, content)
                remote.listen_config(group, data_id, content, context.monitor.on_change)

        self.add_custom_func(load)


_engine: Optional[BootstrapEngine] = None
_engine_lock = threading.Lock()


def new_engine(*switches: Switch, **kwargs: Any) -> BootstrapEngine:
    """Create the process-wide engine; later calls return the existing one unchanged."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = BootstrapEngine(*switches, **kwargs)
        return _engine


def get_engine() -> BootstrapEngine:
    if _engine is not None:
        return _engine
    return new_engine(Switch.ENABLE_DEBUG)


def reset_engine() -> None:
    global _engine
    with _engine_lock:
        _engine = None
