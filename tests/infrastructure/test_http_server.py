# tests/infrastructure/test_http_server.py

"""
run this test with:
python -m pytest tests/infrastructure/test_http_server.py -v
"""

import logging

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from domain.ports.server_port import ServerPort
from infrastructure.gateway.http_server import HttpServer, build_app, client_ip


def load_ping(router):
    @router.get('/ping')
    def ping():
        return {'pong': True}


def load_ip(router):
    @router.get('/ip')
    def ip(request: Request):
        return {'ip': client_ip(request)}


def tagging_middleware(tag, calls):
    async def middleware(request, call_next):
        calls.append(tag)
        response = await call_next(request)
        response.headers[f'x-{tag}'] = '1'
        return response
    return middleware


class TestBuildApp:

    def test_routers_are_mounted_under_prefix(self):
        client = TestClient(build_app('app', [load_ping]))
        assert client.get('/app/ping').json() == {'pong': True}
        assert client.get('/ping').status_code == 404

    def test_empty_prefix(self):
        client = TestClient(build_app('/', [load_ping]))
        assert client.get('/ping').status_code == 200

    def test_middlewares_run_in_registration_order(self):
        calls = []
        app = build_app('api', [load_ping], [tagging_middleware('first', calls), tagging_middleware('second', calls)])

        response = TestClient(app).get('/api/ping')

        assert calls == ['first', 'second']
        assert response.headers['x-first'] == '1'
        assert response.headers['x-second'] == '1'

    def test_requests_are_logged(self, caplog):
        client = TestClient(build_app('app', [load_ping]))
        with caplog.at_level(logging.INFO, logger='infrastructure.gateway.http_server'):
            client.get('/app/ping')
        assert '[200]' in caplog.text
        assert 'GET  /app/ping' in caplog.text

    @pytest.mark.parametrize('forwarded, expected', [
        ('203.0.113.9, 10.0.0.1', '203.0.113.9'),
        ('::1', '127.0.0.1'),
    ])
    def test_client_ip(self, forwarded, expected):
        client = TestClient(build_app('app', [load_ip]))
        response = client.get('/app/ip', headers={'x-forwarded-for': forwarded})
        assert response.json() == {'ip': expected}


class TestHttpServer:

    def test_satisfies_server_port(self):
        assert isinstance(HttpServer(), ServerPort)

    def test_shutdown_before_serve(self):
        server = HttpServer()
        server.shutdown()
        assert not server.running
