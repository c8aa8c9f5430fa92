from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, runtime_checkable


@dataclass(frozen=True)
class ServerInstance:
    name: str
    host: str
    port: int

    @property
    def address(self) -> str:
        return f'{self.host}:{self.port}'

    def info(self) -> str:
        return f'name={self.name} host={self.host} port={self.port}'


@runtime_checkable
class NamingPort(Protocol):
    """Service-instance registration against a naming service."""

    def register_instance(self, instance: ServerInstance) -> None:
        """Raises on failure."""
        ...

    def deregister_instance(self, instance: ServerInstance) -> None:
        """Paired with register; not called by the bootstrap itself."""
        ...

    def select_instances(self, service_name: str, healthy_only: bool = True) -> List[ServerInstance]:
        ...
