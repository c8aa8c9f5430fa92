"""
Exception classes for the bootstrap engine.

Every fatal bootstrap fault derives from :class:`BootstrapError`. Recoverable
subsystem faults are logged by the resolver and never raised past it.
"""

from typing import Optional

__all__ = [
    'BootstrapError',
    'EngineAlreadyRunningError',
    'PhaseOrderError',
    'ConfigurationError',
    'SettingsNotFoundError',
    'ConfiguratorExecutionError',
    'InstanceRegistrationError',
    'TableInitializationError',
    'ServerStartError',
]


class BootstrapError(RuntimeError):
    """
    Base exception for all bootstrap-related errors.

    Carries the phase and component (configurator) the failure belongs to
    when they are known.
    """

    def __init__(self, message: str, component_id: Optional[str] = None, phase: Optional[str] = None):
        super().__init__(message)
        self.component_id = component_id
        self.phase = phase

    def __str__(self) -> str:
        base_msg = super().__str__()

        context_parts = []
        if self.phase:
            context_parts.append(f"phase={self.phase}")
        if self.component_id:
            context_parts.append(f"component={self.component_id}")

        if context_parts:
            return f"{base_msg} ({', '.join(context_parts)})"
        return base_msg


class EngineAlreadyRunningError(BootstrapError):
    """Raised by any mutator or phase entered after the engine started running."""

    def __init__(self, message: str = 'engine has already running', phase: Optional[str] = None):
        super().__init__(message, phase=phase)


class PhaseOrderError(BootstrapError):
    """Raised when a phase is entered before its predecessor completed."""
    pass


class ConfigurationError(BootstrapError):
    """
    Raised when the application configuration file cannot be read,
    decoded or written.
    """
    pass


class SettingsNotFoundError(BootstrapError):
    """Raised when a required configurator has no settings from any source."""
    pass


class ConfiguratorExecutionError(BootstrapError):
    """
    Raised when a required configurator's execute() fails.

    The original exception is kept as ``original_error`` and as ``__cause__``.
    """

    def __init__(self, message: str, component_id: Optional[str] = None, config_from: Optional[str] = None,
                 original_error: Optional[BaseException] = None):
        super().__init__(message, component_id=component_id)
        self.config_from = config_from
        self.original_error = original_error

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.config_from:
            base_msg = f"{base_msg} [config_from={self.config_from}]"
        if self.original_error:
            return f"{base_msg}\nCaused by: {type(self.original_error).__name__}: {self.original_error}"
        return base_msg


class InstanceRegistrationError(BootstrapError):
    """Raised when this server instance cannot be registered with the naming service."""
    pass


class TableInitializationError(BootstrapError):
    """Raised when table structures or seed data for a data source cannot be created."""
    pass


class ServerStartError(BootstrapError):
    """Raised when the server collaborator fails to bind or serve."""
    pass
