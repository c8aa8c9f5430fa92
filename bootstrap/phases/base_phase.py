"""
Base Phase - Abstract interface for all bootstrap phases.

Each phase moves the engine exactly one lifecycle step forward. A phase is
entered only from its predecessor state and never once the engine runs.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional

from bootstrap.bootstrap_context import BootstrapContext, EngineState, Switch
from bootstrap.exceptions import EngineAlreadyRunningError, PhaseOrderError

logger = logging.getLogger(__name__)


@dataclass
class PhaseResult:
    """Result of a bootstrap phase execution."""
    success: bool
    message: str
    errors: List[str]
    warnings: List[str]
    metadata: Dict[str, Any]

    @classmethod
    def success_result(
        cls,
        message: str,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        """Create a successful phase result."""
        return cls(
            success=True,
            message=message,
            errors=[],
            warnings=warnings or [],
            metadata=metadata or {}
        )

    @classmethod
    def failure_result(
        cls,
        message: str,
        errors: List[str],
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        """Create a failed phase result."""
        return cls(
            success=False,
            message=message,
            errors=errors,
            warnings=warnings or [],
            metadata=metadata or {}
        )

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)


class BootstrapPhase(ABC):
    """
    Abstract base class for all bootstrap phases.

    Subclasses declare ``task_name`` (their queue task name), ``entry_state``
    and ``exit_state``, and implement :meth:`execute`.
    """

    task_name: ClassVar[str]
    entry_state: ClassVar[EngineState]
    exit_state: ClassVar[EngineState]

    def __init__(self):
        self.phase_name = self.__class__.__name__
        self.logger = logging.getLogger(f"bootstrap.{self.phase_name.lower()}")

    @abstractmethod
    def execute(self, context: BootstrapContext) -> PhaseResult:
        """
        Execute this bootstrap phase.

        Args:
            context: BootstrapContext containing shared state

        Returns:
            PhaseResult describing what was done. Fatal faults raise instead.
        """

    def pre_execute(self, context: BootstrapContext) -> None:
        self.logger.debug(f"Starting phase: {self.phase_name}")

    def post_execute(self, context: BootstrapContext, result: PhaseResult) -> None:
        if result.success:
            self.logger.info(f"✓ Phase completed: {self.phase_name} - {result.message}")
        else:
            self.logger.error(f"✗ Phase failed: {self.phase_name} - {result.message}")
            for error in result.errors:
                self.logger.error(f"  Error: {error}")

        for warning in result.warnings:
            self.logger.warning(f"  Warning: {warning}")

    def validate_context(self, context: BootstrapContext) -> None:
        """Single-run guard and sequential ordering check."""
        if context.enabled(Switch.RUNNING):
            raise EngineAlreadyRunningError(phase=self.phase_name)
        if context.state != self.entry_state:
            raise PhaseOrderError(
                f"Phase entered from state {context.state.name}, expected {self.entry_state.name}",
                phase=self.phase_name,
            )

    def execute_with_hooks(self, context: BootstrapContext) -> PhaseResult:
        """
        Execute phase with pre/post hooks.

        This is the entry point called by the engine and by queue tasks.
        Exceptions are logged as a failed result and re-raised.
        """
        self.validate_context(context)
        self.pre_execute(context)
        try:
            result = self.execute(context)
        except Exception as e:
            self.post_execute(context, PhaseResult.failure_result(
                message=f"Phase {self.phase_name} failed with exception",
                errors=[f"{type(e).__name__}: {e}"],
                metadata={'phase_name': self.phase_name},
            ))
            raise
        if result.success:
            context.state = self.exit_state
        self.post_execute(context, result)
        return result
