from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Iterator, List, Optional, TypeVar

from pydantic import BaseModel

from configs.codec import update_model

__all__ = ['Configurator', 'MultiConfigurator', 'SettingsLocation', 'DEFAULT_SOURCE', 'select_primary']
logger = logging.getLogger(__name__)

DEFAULT_SOURCE = 'default'

T = TypeVar('T')


@dataclass(frozen=True)
class SettingsLocation:
    """Where a configurator's settings may be found: a local file and a remote data id."""
    file_path: str
    data_id: str
    listen: bool = False
    group: Optional[str] = None


class Configurator(ABC):
    """
    A subsystem's self-contained settings-and-initialization unit.

    Subclasses are normally pydantic models, which gives them compiled
    defaults and an in-place ``load``. ``required`` makes resolution or
    execution failures fatal to the enclosing phase; ``run_without_settings``
    executes with compiled defaults when no settings source is found.
    """

    required: ClassVar[bool] = False
    run_without_settings: ClassVar[bool] = False

    @abstractmethod
    def format(self) -> str:
        """Human-readable one-line summary of the current settings."""

    def location(self) -> Optional[SettingsLocation]:
        return None

    @abstractmethod
    def execute(self) -> None:
        """Apply the settings and establish the subsystem's shared handle."""

    def load(self, data: Any) -> None:
        """Decode ``data`` into this configurator in place; fields it omits keep their values."""
        if not isinstance(self, BaseModel):
            raise TypeError(f'{type(self).__name__} must override load() to accept settings')
        update_model(self, data)


def select_primary(entries: Iterable[T], source_attr: str = 'source') -> Optional[T]:
    """
    Entry whose source is ``default``, otherwise the first of ``entries``.

    No filtering happens here; :attr:`MultiConfigurator.primary` passes only
    the enabled entries.
    """
    first = None
    for entry in entries:
        if getattr(entry, source_attr, None) == DEFAULT_SOURCE:
            return entry
        if first is None:
            first = entry
    return first


class MultiConfigurator(Configurator):
    """
    Base for ``RootModel[List[...]]`` configurators that hold one entry per
    data source. Whatever a family resolves to is exposed in this shape.
    """

    def entries(self) -> List[Any]:
        return list(getattr(self, 'root', None) or [])

    def __iter__(self) -> Iterator[Any]:  # type: ignore[override]
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self.entries())

    def __getitem__(self, index: int) -> Any:
        return self.entries()[index]

    def format(self) -> str:
        return '[' + ', '.join('{' + entry.format() + '}' for entry in self.entries()) + ']'

    def sources(self) -> List[str]:
        return [entry.source for entry in self.entries()]

    @property
    def primary(self) -> Optional[Any]:
        """The ``default`` source among enabled entries, else the first enabled one."""
        return select_primary(e for e in self.entries() if getattr(e, 'enable', True))
