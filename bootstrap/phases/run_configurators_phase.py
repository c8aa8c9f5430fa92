from __future__ import annotations

from bootstrap.bootstrap_context import BootstrapContext, EngineState
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.processors import ConfiguratorResolver


class RunConfiguratorsPhase(BootstrapPhase):
    """Caller-registered configurators, in registration order."""

    task_name = 'init_outer_config'
    entry_state = EngineState.BASIC_SUBSYSTEMS_INIT
    exit_state = EngineState.CUSTOM_CONFIGURATORS_RUN

    def execute(self, context: BootstrapContext) -> PhaseResult:
        resolver = ConfiguratorResolver(context)
        executed = sum(1 for configurator in context.configurators if resolver.resolve(configurator))
        return PhaseResult.success_result(
            message=f"{executed}/{len(context.configurators)} custom configurators executed",
            metadata={'executed': executed},
        )
