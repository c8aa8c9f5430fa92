"""Bootstrap processors package initialization."""

from .configurator_resolver import ConfiguratorResolver, SubsystemFamily

__all__ = [
    'ConfiguratorResolver',
    'SubsystemFamily',
]
