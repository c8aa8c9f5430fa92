from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from sqlalchemy import Table, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

if TYPE_CHECKING:
    from infrastructure.database.database_config import DatabaseConfig

logger = logging.getLogger(__name__)

__all__ = ['DatabaseHandler', 'this', 'initialized', 'register', 'reset']


def _table_of(model: Any) -> Table:
    table = getattr(model, '__table__', model)
    if not isinstance(table, Table):
        raise TypeError(f'{model!r} is neither a sqlalchemy Table nor a mapped class')
    return table


class DatabaseHandler:
    """Shared engines of every connected data source."""

    def __init__(self) -> None:
        self.multi = False
        self.primary_source: Optional[str] = None
        self._engines: Dict[str, Engine] = {}
        self._configs: Dict[str, 'DatabaseConfig'] = {}
        self._sessions: Dict[str, sessionmaker] = {}

    def add(self, config: 'DatabaseConfig', engine: Engine, primary: bool = False) -> None:
        if self._engines:
            self.multi = True
        self._engines[config.source] = engine
        self._configs[config.source] = config
        self._sessions[config.source] = sessionmaker(bind=engine)
        if primary or self.primary_source is None:
            self.primary_source = config.source

    def sources(self) -> List[str]:
        return list(self._engines)

    def get_engine(self, source: Optional[str] = None) -> Engine:
        source = source or self.primary_source
        if source not in self._engines:
            raise KeyError(f"database source '{source}' is not connected")
        return self._engines[source]

    def get_config(self, source: Optional[str] = None) -> 'DatabaseConfig':
        return self._configs[source or self.primary_source]

    def session(self, source: Optional[str] = None) -> Session:
        self.get_engine(source)
        return self._sessions[source or self.primary_source]()

    def init_tables(self, source: str, tables: Sequence[Any]) -> None:
        """Create missing tables of ``source`` and seed new ones from ``init_data()``."""
        engine = self.get_engine(source)
        for model in tables:
            table = _table_of(model)
            existed = inspect(engine).has_table(table.name, schema=table.schema)
            table.create(bind=engine, checkfirst=True)
            seed = getattr(model, 'init_data', None)
            if existed or not callable(seed):
                continue
            rows = list(seed() or [])
            if not rows:
                continue
            if all(isinstance(row, dict) for row in rows):
                with engine.begin() as conn:
                    conn.execute(table.insert(), rows)
            else:
                with self._sessions[source]() as session, session.begin():
                    session.add_all(rows)
            logger.info(f'init table data: source={source} table={table.name} rows={len(rows)}')
        logger.info(f'init table struct successfully: source={source} tables={len(tables)}')

    def dispose(self) -> None:
        for engine in self._engines.values():
            try:
                engine.dispose()
            except SQLAlchemyError as e:
                logger.warning(f'dispose database engine failed: {e}')


_handler: Optional[DatabaseHandler] = None


def this() -> DatabaseHandler:
    if _handler is None:
        raise RuntimeError('database is not initialized')
    return _handler


def initialized() -> bool:
    return _handler is not None and bool(_handler.sources())


def register(config: 'DatabaseConfig', engine: Engine, primary: bool = False) -> DatabaseHandler:
    global _handler
    if _handler is None:
        _handler = DatabaseHandler()
    _handler.add(config, engine, primary=primary)
    return _handler


def reset() -> None:
    global _handler
    if _handler is not None:
        _handler.dispose()
    _handler = None
