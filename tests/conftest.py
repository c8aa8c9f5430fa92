# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from bootstrap.bootstrap_context import BootstrapContext
from bootstrap.engine import BootstrapEngine, reset_engine
from core.config_monitor import get_config_monitor
from domain.ports.remote_config_port import RemoteConfigPort
from infrastructure.cache import cache_config
from infrastructure.database import handler as database_handler
from infrastructure.kvstore import redis_config

LOCAL_IP = '10.0.0.5'


@pytest.fixture(autouse=True)
def isolated_process_state(tmp_path, monkeypatch):
    """Run every test in its own directory and reset process-wide handles afterwards."""
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    reset_engine()
    database_handler.reset()
    redis_config.reset()
    cache_config.reset()
    get_config_monitor().clear()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / 'conf'
    path.mkdir()
    return path


@pytest.fixture
def fake_server():
    server = MagicMock()
    server.serve.return_value = None
    return server


@pytest.fixture
def fake_remote():
    """Remote config client serving documents from ``fake_remote.documents``."""
    remote = MagicMock(spec=RemoteConfigPort)
    remote.documents = {}

    def get_config(group, data_id):
        try:
            return remote.documents[(group, data_id)]
        except KeyError:
            raise LookupError(f'config not found: {group}/{data_id}') from None

    remote.get_config.side_effect = get_config
    return remote


@pytest.fixture
def context(config_dir):
    return BootstrapContext(config_dir=str(config_dir), local_ip=lambda: LOCAL_IP)


@pytest.fixture
def make_engine(config_dir, fake_server):
    def _make(*switches, **collaborators):
        collaborators.setdefault('server', fake_server)
        collaborators.setdefault('local_ip', lambda: LOCAL_IP)
        return BootstrapEngine(*switches, config_dir=config_dir, **collaborators)
    return _make
