# tests/infrastructure/test_nacos_client.py

"""
run this test with:
python -m pytest tests/infrastructure/test_nacos_client.py -v
"""

import httpx
import pytest

from domain.ports.naming_port import ServerInstance
from infrastructure.nacos import NacosClient, NacosConfig, RemoteConfigError

INSTANCE = ServerInstance(name='orders', host='10.0.0.5', port=9000)


class FakeNacos:
    """Records requests and answers them like a single nacos server."""

    def __init__(self):
        self.requests = []
        self.configs = {}
        self.register_reply = 'ok'

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == '/nacos/v1/auth/login':
            return httpx.Response(200, json={'accessToken': 'token-1', 'tokenTtl': 18000})
        if path == '/nacos/v1/cs/configs':
            key = (request.url.params['group'], request.url.params['dataId'])
            if key not in self.configs:
                return httpx.Response(404, text='config data not exist')
            return httpx.Response(200, text=self.configs[key])
        if path == '/nacos/v1/ns/instance':
            return httpx.Response(200, text=self.register_reply)
        if path == '/nacos/v1/ns/instance/list':
            return httpx.Response(200, json={'hosts': [
                {'ip': '10.0.0.5', 'port': 9000, 'enabled': True},
                {'ip': '10.0.0.6', 'port': 9000, 'enabled': False},
            ]})
        return httpx.Response(404)


@pytest.fixture
def nacos():
    return FakeNacos()


@pytest.fixture
def make_client(nacos):
    clients = []

    def _make(**kwargs):
        kwargs.setdefault('servers', ['127.0.0.1:8848'])
        client = NacosClient(transport=httpx.MockTransport(nacos), beat_interval=3600, **kwargs)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


class TestConfig:

    def test_get_config(self, nacos, make_client):
        nacos.configs[('orders', 'database.yaml')] = 'enable: true'
        assert make_client().get_config('orders', 'database.yaml') == 'enable: true'

    def test_missing_config(self, make_client):
        with pytest.raises(RemoteConfigError) as exc_info:
            make_client().get_config('orders', 'missing.yaml')
        assert exc_info.value.status_code == 404

    def test_login_token_is_sent(self, nacos, make_client):
        nacos.configs[('orders', 'log.yaml')] = 'level: info'
        client = make_client(username='nacos', password='secret')
        client.get_config('orders', 'log.yaml')
        client.get_config('orders', 'log.yaml')

        logins = [r for r in nacos.requests if r.url.path.endswith('/auth/login')]
        assert len(logins) == 1
        assert nacos.requests[-1].url.params['accessToken'] == 'token-1'

    def test_public_namespace_has_no_tenant(self, nacos, make_client):
        nacos.configs[('orders', 'log.yaml')] = 'level: info'
        make_client(namespace='public').get_config('orders', 'log.yaml')
        assert 'tenant' not in nacos.requests[-1].url.params

    def test_custom_namespace_is_the_tenant(self, nacos, make_client):
        nacos.configs[('orders', 'log.yaml')] = 'level: info'
        make_client(namespace='staging').get_config('orders', 'log.yaml')
        assert nacos.requests[-1].url.params['tenant'] == 'staging'

    def test_failover_to_next_server(self, nacos):
        nacos.configs[('orders', 'log.yaml')] = 'level: info'

        def handler(request):
            if request.url.host == 'down.local':
                raise httpx.ConnectError('connection refused', request=request)
            return nacos(request)

        client = NacosClient(['down.local:8848', 'up.local:8848'], transport=httpx.MockTransport(handler))
        try:
            assert client.get_config('orders', 'log.yaml') == 'level: info'
        finally:
            client.close()

    def test_no_server_reachable(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        client = NacosClient(['a.local:8848', 'b.local:8848'], transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(RemoteConfigError, match='no server reachable'):
                client.get_config('orders', 'log.yaml')
        finally:
            client.close()

    def test_servers_are_required(self):
        with pytest.raises(ValueError):
            NacosClient([])


class TestNaming:

    def test_register_instance(self, nacos, make_client):
        make_client().register_instance(INSTANCE)

        request = nacos.requests[-1]
        assert request.method == 'POST'
        assert request.url.params['serviceName'] == 'orders'
        assert request.url.params['ip'] == '10.0.0.5'
        assert request.url.params['port'] == '9000'
        assert request.url.params['groupName'] == 'DEFAULT_GROUP'

    def test_register_rejected(self, nacos, make_client):
        nacos.register_reply = 'failed'
        with pytest.raises(RemoteConfigError):
            make_client().register_instance(INSTANCE)

    def test_select_instances_skips_disabled(self, make_client):
        instances = make_client().select_instances('orders')
        assert [i.address for i in instances] == ['10.0.0.5:9000']


class TestNacosConfig:

    def test_modes(self):
        assert NacosConfig(mode=0).enable_config and not NacosConfig(mode=0).enable_naming
        assert NacosConfig(mode=1).enable_naming and not NacosConfig(mode=1).enable_config
        assert NacosConfig(mode=2).enable_config and NacosConfig(mode=2).enable_naming

    def test_address_list(self):
        config = NacosConfig(address='a:8848, b:8848')
        assert config.servers() == ['a:8848', 'b:8848']
        assert config.address_url() == 'a:8848/nacos,b:8848/nacos'

    def test_namespace_alias(self):
        assert NacosConfig.model_validate({'nameSpace': 'staging'}).namespace == 'staging'

    def test_clients_follow_mode(self):
        config = NacosConfig(mode=1)
        config.execute()
        assert config.config_client is None
        assert isinstance(config.naming_client, NacosClient)
        config.naming_client.close()
