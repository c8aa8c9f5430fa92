from __future__ import annotations

import os

from bootstrap.bootstrap_context import BootstrapContext, EngineState, Switch
from bootstrap.exceptions import ServerStartError
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from infrastructure.gateway.http_server import HttpServer

PORT_ENV = 'PORT'
BIND_ALL = '0.0.0.0'


class StartServerPhase(BootstrapPhase):
    """
    Marks the engine running and hands control to the server until it stops.

    A server fault is logged and the phase then waits on the context's
    shutdown event, keeping the process alive for external supervision.
    """

    task_name = 'start_server'
    entry_state = EngineState.CUSTOM_FUNCTIONS_RUN
    exit_state = EngineState.SERVER_STARTED

    def execute(self, context: BootstrapContext) -> PhaseResult:
        server_config = context.config.server
        port = self._port(context)

        context.enable(Switch.RUNNING)
        context.state = EngineState.SERVER_STARTED
        if context.server is None:
            context.server = HttpServer(title=server_config.name)
        if not context.routers:
            self.logger.warning("Router is empty")

        self.logger.info(f"API address: http://{server_config.host}:{port}{server_config.api_prefix}")
        try:
            context.server.serve(
                BIND_ALL,
                port,
                server_config.prefix,
                list(context.routers),
                list(context.middlewares),
                debug=context.debug or server_config.debug,
            )
        except Exception as e:
            error = ServerStartError(f"Server run failed: {e}", phase=self.phase_name)
            self.logger.error(str(error), exc_info=e)
            self.logger.error("Server stopped; process kept alive until shutdown")
            context.shutdown_event.wait()
            return PhaseResult.failure_result(message="Server run failed", errors=[str(error)])

        return PhaseResult.success_result(message=f"Server stopped on port {port}")

    def _port(self, context: BootstrapContext) -> int:
        if not context.enabled(Switch.CUSTOM_PORT):
            return context.config.server.port
        value = os.environ.get(PORT_ENV, '')
        try:
            return int(value)
        except ValueError as e:
            raise ServerStartError(f"Invalid {PORT_ENV} environment variable: '{value}'",
                                   phase=self.phase_name) from e
