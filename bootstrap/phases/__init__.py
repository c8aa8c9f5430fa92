from typing import List

from .base_phase import BootstrapPhase, PhaseResult
from .init_subsystems_phase import InitSubsystemsPhase
from .load_config_phase import LoadConfigPhase
from .run_configurators_phase import RunConfiguratorsPhase
from .run_custom_functions_phase import RunCustomFunctionsPhase
from .start_server_phase import StartServerPhase


def default_phases() -> List[BootstrapPhase]:
    """The five bootstrap phases in execution order."""
    return [
        LoadConfigPhase(),
        InitSubsystemsPhase(),
        RunConfiguratorsPhase(),
        RunCustomFunctionsPhase(),
        StartServerPhase(),
    ]


__all__ = [
    'BootstrapPhase', 'PhaseResult', 'default_phases',
    'LoadConfigPhase', 'InitSubsystemsPhase', 'RunConfiguratorsPhase',
    'RunCustomFunctionsPhase', 'StartServerPhase',
]
