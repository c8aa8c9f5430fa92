from __future__ import annotations

from bootstrap.bootstrap_context import BootstrapContext, EngineState
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult


class RunCustomFunctionsPhase(BootstrapPhase):
    task_name = 'run_custom_function'
    entry_state = EngineState.CUSTOM_CONFIGURATORS_RUN
    exit_state = EngineState.CUSTOM_FUNCTIONS_RUN

    def execute(self, context: BootstrapContext) -> PhaseResult:
        # failures propagate to the caller of run()
        for func in context.custom_funcs:
            func()
        return PhaseResult.success_result(message=f"{len(context.custom_funcs)} custom functions run")
