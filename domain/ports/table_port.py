from __future__ import annotations

from typing import Any, List, Protocol, Sequence, runtime_checkable


@runtime_checkable
class TableInitializerPort(Protocol):
    """Storage collaborator that creates table structures for one data source."""

    def sources(self) -> List[str]:
        """Names of the data sources that were initialized."""
        ...

    def init_tables(self, source: str, tables: Sequence[Any]) -> None:
        """Raises if any table cannot be created or seeded."""
        ...
