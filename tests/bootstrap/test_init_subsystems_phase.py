# tests/bootstrap/test_init_subsystems_phase.py

"""
run this test with:
python -m pytest tests/bootstrap/test_init_subsystems_phase.py -v
"""

import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy import String, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from bootstrap.bootstrap_context import EngineState, Switch
from bootstrap.exceptions import TableInitializationError
from bootstrap.phases import InitSubsystemsPhase
from infrastructure.cache import MultiCacheConfig
from infrastructure.cache import cache_config
from infrastructure.database import MultiDatabaseConfig
from infrastructure.database import handler as database_handler
from infrastructure.kvstore import MultiRedisConfig
from infrastructure.kvstore import redis_config
from infrastructure.logs import LogConfig


class Base(DeclarativeBase):
    pass


class Role(Base):
    __tablename__ = 'roles'

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(32))

    @classmethod
    def init_data(cls):
        return [{'id': 1, 'name': 'admin'}, {'id': 2, 'name': 'guest'}]


@pytest.fixture
def phase():
    return InitSubsystemsPhase()


@pytest.fixture
def loaded(context):
    """Context as left behind by the config-loading phase."""
    context.state = EngineState.CONFIG_LOADED
    return context


@pytest.fixture
def fake_redis(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(redis_config.redis, 'Redis', MagicMock(return_value=client))
    return client


def write(config_dir, filename, content):
    (config_dir / filename).write_text(content, encoding='utf-8')


class TestLogging:

    def test_log_runs_with_server_defaults(self, phase, loaded, tmp_path):
        loaded.config.server.name = 'orders'
        phase.execute_with_hooks(loaded)

        assert isinstance(loaded.config.log, LogConfig)
        assert loaded.config.log.file_name == 'orders.log'
        assert (tmp_path / 'resource' / 'log' / 'orders.log').exists()
        assert loaded.state == EngineState.BASIC_SUBSYSTEMS_INIT

    def test_log_settings_file(self, phase, loaded, config_dir, tmp_path):
        write(config_dir, 'log.yaml', 'fileName: svc.log\ndir: logs\nlevel: debug\nconsole: false\n')
        phase.execute_with_hooks(loaded)

        assert (tmp_path / 'logs' / 'svc.log').exists()
        assert logging.getLogger().level == logging.DEBUG

    def test_partial_log_settings_keep_server_file_name(self, phase, loaded, config_dir, tmp_path):
        loaded.config.server.name = 'orders'
        write(config_dir, 'log.yaml', 'level: debug\nconsole: false\n')

        phase.execute_with_hooks(loaded)

        assert loaded.config.log.file_name == 'orders.log'
        assert loaded.config.log.level == 'debug'
        assert (tmp_path / 'resource' / 'log' / 'orders.log').exists()


class TestDatabase:

    def test_missing_settings_leave_database_down(self, phase, loaded):
        result = phase.execute_with_hooks(loaded)

        assert isinstance(loaded.config.database, MultiDatabaseConfig)
        assert len(loaded.config.database) == 1
        assert result.metadata['database'] is False
        assert not database_handler.initialized()

    def test_tables_are_created_and_seeded(self, phase, loaded, config_dir):
        write(config_dir, 'database.yaml', 'enable: true\ntype: sqlite\ndatabase: app.db\n')
        loaded.tables = {'default': [Role]}

        phase.execute_with_hooks(loaded)

        with database_handler.this().session() as session:
            names = session.scalars(select(Role.name).order_by(Role.id)).all()
        assert names == ['admin', 'guest']

    def test_tables_skipped_without_database(self, phase, loaded):
        loaded.tables = {'default': [Role]}
        result = phase.execute_with_hooks(loaded)
        assert any('database is not initialized' in w for w in result.warnings)

    def test_injected_table_initializer(self, phase, loaded):
        initializer = MagicMock()
        initializer.sources.return_value = ['default']
        loaded.table_initializer = initializer
        loaded.tables = {'default': [Role], 'reports': [Role]}

        result = phase.execute_with_hooks(loaded)

        initializer.init_tables.assert_called_once_with('default', [Role])
        assert any("'reports' skipped" in w for w in result.warnings)

    def test_table_failure_is_fatal(self, phase, loaded):
        initializer = MagicMock()
        initializer.sources.return_value = ['default']
        initializer.init_tables.side_effect = RuntimeError('ddl rejected')
        loaded.table_initializer = initializer
        loaded.tables = {'default': [Role]}

        with pytest.raises(TableInitializationError) as exc_info:
            phase.execute_with_hooks(loaded)
        assert exc_info.value.component_id == 'default'
        assert loaded.state == EngineState.CONFIG_LOADED


class TestRedisAndCache:

    def test_cache_skipped_without_redis(self, phase, loaded, config_dir):
        write(config_dir, 'cache.yaml', 'prefix: "orders:"\n')
        result = phase.execute_with_hooks(loaded)

        assert isinstance(loaded.config.redis, MultiRedisConfig)
        assert loaded.config.cache is None
        assert not cache_config.initialized()
        assert any('Cache skipped' in w for w in result.warnings)

    def test_cache_on_top_of_redis(self, phase, loaded, config_dir, fake_redis):
        write(config_dir, 'redis.yaml', 'enable: true\nhost: redis.internal\n')
        write(config_dir, 'cache.yaml', 'prefix: "orders:"\nmarshal: yaml\n')

        phase.execute_with_hooks(loaded)

        assert redis_config.this().get_client() is fake_redis
        fake_redis.ping.assert_called_once()
        client = cache_config.get_client()
        assert client.redis is fake_redis
        assert client.prefix == 'orders:'
        assert client.marshal == 'yaml'
        assert isinstance(loaded.config.cache, MultiCacheConfig)

    def test_multi_redis_sources(self, phase, loaded, config_dir, fake_redis):
        write(config_dir, 'redis.yaml', '\n'.join([
            '- {source: sessions, enable: true, database: 1}',
            '- {source: default, enable: true}',
            '- {source: spare, enable: false}',
        ]))
        loaded.enable(Switch.MULTI_REDIS)

        phase.execute_with_hooks(loaded)

        handler = redis_config.this()
        assert sorted(handler.sources()) == ['default', 'sessions']
        assert handler.primary_source == 'default'

    def test_default_cache_without_settings(self, phase, loaded, config_dir, fake_redis):
        write(config_dir, 'redis.yaml', 'enable: true\n')

        phase.execute_with_hooks(loaded)

        assert cache_config.initialized()
        client = cache_config.get_client()
        assert client.redis is fake_redis
        assert (client.prefix, client.marshal) == ('cache', 'json')
