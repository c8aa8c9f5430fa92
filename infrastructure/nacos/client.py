"""infrastructure.nacos.client
=============================

Small synchronous client for the Nacos open API (v1) covering what the
bootstrap needs: fetching settings documents, long-poll change listening,
and registering this server as an ephemeral instance.

Background work (change listeners, instance heartbeats) runs on daemon
threads that stop on :meth:`NacosClient.close` or process exit.
"""

from __future__ import annotations

import hashlib
import json
import logging
import random
import threading
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from domain.ports.naming_port import ServerInstance
from domain.ports.remote_config_port import ChangeCallback

logger = logging.getLogger(__name__)

__all__ = ['NacosClient', 'RemoteConfigError']

CONTEXT_PATH = '/nacos'
DEFAULT_SERVICE_GROUP = 'DEFAULT_GROUP'
LONG_POLL_TIMEOUT_MS = 30_000

_WORD_SEP = '\x02'
_LINE_SEP = '\x01'


class RemoteConfigError(RuntimeError):
    """Raised when the config/naming service rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NacosClient:

    def __init__(
        self,
        servers: Sequence[str],
        username: str = '',
        password: str = '',
        namespace: str = '',
        service_group: str = DEFAULT_SERVICE_GROUP,
        timeout: float = 10.0,
        beat_interval: float = 3.0,
        retry_interval: float = 2.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not servers:
            raise ValueError('the address of nacos cannot be empty')
        self.servers = [self._base_url(s) for s in servers]
        self.username = username
        self.password = password
        # the public namespace is addressed with an empty tenant
        self.namespace = '' if namespace in ('', 'public') else namespace
        self.service_group = service_group
        self.beat_interval = beat_interval
        self.retry_interval = retry_interval
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()
        self._stop = threading.Event()
        self._listeners: Dict[Tuple[str, str], threading.Thread] = {}
        self._beats: Dict[str, threading.Event] = {}

    @staticmethod
    def _base_url(server: str) -> str:
        server = server.strip().rstrip('/')
        if not server.startswith(('http://', 'https://')):
            server = f'http://{server}'
        if not server.endswith(CONTEXT_PATH):
            server = f'{server}{CONTEXT_PATH}'
        return server

    # ------------------------------------------------------------------ #
    # transport
    # ------------------------------------------------------------------ #
    def _login(self) -> None:
        with self._token_lock:
            if not self.username or (self._token and time.monotonic() < self._token_expires_at):
                return
            last_error: Optional[Exception] = None
            for server in self.servers:
                try:
                    response = self._http.post(f'{server}/v1/auth/login',
                                               data={'username': self.username, 'password': self.password})
                except httpx.TransportError as e:
                    last_error = e
                    continue
                if response.status_code != 200:
                    raise RemoteConfigError(f'nacos login failed: {response.text}', response.status_code)
                body = response.json()
                self._token = body.get('accessToken')
                # refresh a little before the server-side expiry
                ttl = float(body.get('tokenTtl', 18000))
                self._token_expires_at = time.monotonic() + ttl * 0.9
                return
            raise RemoteConfigError(f'nacos login failed, no server reachable: {last_error}')

    def _request(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None,
                 data: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None,
                 timeout: Optional[float] = None) -> httpx.Response:
        self._login()
        params = dict(params or {})
        if self._token:
            params['accessToken'] = self._token
        last_error: Optional[Exception] = None
        for server in self.servers:
            try:
                kwargs: Dict[str, Any] = {'params': params, 'data': data, 'headers': headers}
                if timeout is not None:
                    kwargs['timeout'] = timeout
                response = self._http.request(method, f'{server}{path}', **kwargs)
            except httpx.TransportError as e:
                logger.debug(f'nacos server {server} unreachable: {e}')
                last_error = e
                continue
            if response.status_code >= 400:
                raise RemoteConfigError(f'nacos {method} {path} failed [{response.status_code}]: {response.text}',
                                        response.status_code)
            return response
        raise RemoteConfigError(f'nacos {method} {path} failed, no server reachable: {last_error}')

    # ------------------------------------------------------------------ #
    # config
    # ------------------------------------------------------------------ #
    def _config_params(self, group: str, data_id: str) -> Dict[str, str]:
        params = {'dataId': data_id, 'group': group}
        if self.namespace:
            params['tenant'] = self.namespace
        return params

    def get_config(self, group: str, data_id: str) -> str:
        try:
            response = self._request('GET', '/v1/cs/configs', params=self._config_params(group, data_id))
        except RemoteConfigError as e:
            if e.status_code == 404:
                raise RemoteConfigError(f'nacos config not found: group={group} dataId={data_id}', 404) from e
            raise
        return response.text

    def listen_config(self, group: str, data_id: str, content: str, on_change: ChangeCallback) -> None:
        key = (group, data_id)
        if key in self._listeners:
            logger.debug(f'nacos config already listened: group={group} dataId={data_id}')
            return
        thread = threading.Thread(
            target=self._listen_loop,
            args=(group, data_id, content, on_change),
            name=f'nacos-listen-{group}-{data_id}',
            daemon=True,
        )
        self._listeners[key] = thread
        thread.start()
        logger.info(f'listen nacos config successfully: group={group} dataId={data_id}')

    def _listening_configs(self, group: str, data_id: str, content: str) -> str:
        md5 = hashlib.md5(content.encode('utf-8')).hexdigest()
        words = [data_id, group, md5]
        if self.namespace:
            words.append(self.namespace)
        return _WORD_SEP.join(words) + _LINE_SEP

    def poll_config_change(self, group: str, data_id: str, content: str) -> Optional[str]:
        """One long-poll round. Returns the new content, or None if nothing changed."""
        response = self._request(
            'POST', '/v1/cs/configs/listener',
            data={'Listening-Configs': self._listening_configs(group, data_id, content)},
            headers={'Long-Pulling-Timeout': str(LONG_POLL_TIMEOUT_MS)},
            timeout=LONG_POLL_TIMEOUT_MS / 1000 + 10,
        )
        if not response.text.strip():
            return None
        return self.get_config(group, data_id)

    def _listen_loop(self, group: str, data_id: str, content: str, on_change: ChangeCallback) -> None:
        while not self._stop.is_set():
            try:
                changed = self.poll_config_change(group, data_id, content)
            except RemoteConfigError as e:
                logger.warning(f'nacos config listening failed, retrying: group={group} dataId={data_id}: {e}')
                self._stop.wait(self.retry_interval)
                continue
            if changed is not None and changed != content:
                content = changed
                try:
                    on_change(group, data_id, content)
                except Exception:
                    logger.error(f'nacos config change callback failed: group={group} dataId={data_id}',
                                 exc_info=True)

    # ------------------------------------------------------------------ #
    # naming
    # ------------------------------------------------------------------ #
    def _instance_params(self, instance: ServerInstance) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            'ip': instance.host,
            'port': instance.port,
            'serviceName': instance.name,
            'groupName': self.service_group,
            'ephemeral': 'true',
        }
        if self.namespace:
            params['namespaceId'] = self.namespace
        return params

    def register_instance(self, instance: ServerInstance) -> None:
        params = self._instance_params(instance)
        params.update({'weight': 1, 'enabled': 'true', 'healthy': 'true'})
        try:
            response = self._request('POST', '/v1/ns/instance', params=params)
        except RemoteConfigError:
            logger.error(f'nacos server register failed: {instance.info()}')
            raise
        if response.text.strip() != 'ok':
            raise RemoteConfigError(f'nacos server register failed: {instance.info()}: {response.text}')
        self._start_beat(instance)
        logger.info(f'nacos server register successfully: {instance.info()}')

    def deregister_instance(self, instance: ServerInstance) -> None:
        stop = self._beats.pop(instance.address, None)
        if stop is not None:
            stop.set()
        try:
            self._request('DELETE', '/v1/ns/instance', params=self._instance_params(instance))
        except RemoteConfigError:
            logger.error(f'nacos server deregister failed: {instance.info()}')
            raise
        logger.info(f'nacos server deregister successfully: {instance.info()}')

    def select_instances(self, service_name: str, healthy_only: bool = True) -> List[ServerInstance]:
        params: Dict[str, Any] = {
            'serviceName': service_name,
            'groupName': self.service_group,
            'healthyOnly': 'true' if healthy_only else 'false',
        }
        if self.namespace:
            params['namespaceId'] = self.namespace
        body = self._request('GET', '/v1/ns/instance/list', params=params).json()
        return [
            ServerInstance(name=service_name, host=host['ip'], port=int(host['port']))
            for host in body.get('hosts', [])
            if host.get('enabled', True)
        ]

    def select_one_healthy_instance(self, service_name: str) -> ServerInstance:
        instances = self.select_instances(service_name, healthy_only=True)
        if not instances:
            raise RemoteConfigError(f'no healthy instance of {service_name}')
        return random.choice(instances)

    def _start_beat(self, instance: ServerInstance) -> None:
        if instance.address in self._beats:
            return
        stop = threading.Event()
        self._beats[instance.address] = stop
        thread = threading.Thread(target=self._beat_loop, args=(instance, stop),
                                  name=f'nacos-beat-{instance.name}', daemon=True)
        thread.start()

    def send_beat(self, instance: ServerInstance) -> None:
        beat = {
            'ip': instance.host,
            'port': instance.port,
            'serviceName': f'{self.service_group}@@{instance.name}',
            'cluster': 'DEFAULT',
            'weight': 1,
            'scheduled': True,
            'metadata': {},
        }
        params = self._instance_params(instance)
        params['beat'] = json.dumps(beat)
        self._request('PUT', '/v1/ns/instance/beat', params=params)

    def _beat_loop(self, instance: ServerInstance, stop: threading.Event) -> None:
        while not stop.wait(self.beat_interval) and not self._stop.is_set():
            try:
                self.send_beat(instance)
            except RemoteConfigError as e:
                logger.warning(f'nacos heartbeat failed: {instance.info()}: {e}')

    def close(self) -> None:
        self._stop.set()
        for stop in self._beats.values():
            stop.set()
        self._beats.clear()
        self._http.close()
