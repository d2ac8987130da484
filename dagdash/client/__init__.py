"""
Airflow REST clients, one per API version
"""

import logging
import threading
from typing import Dict

from ..config import ServerConfig
from .base import AirflowClient
from .exceptions import (
    AirflowAPIError,
    AirflowAuthenticationError,
    AirflowNotFoundError,
    DagdashClientError,
    TokenCommandError,
)
from .v1 import AirflowV1Client
from .v2 import AirflowV2Client

logger = logging.getLogger(__name__)

_CLIENTS_BY_VERSION = {
    'airflow2': AirflowV1Client,
    'airflow3': AirflowV2Client,
}


def create_client(server: ServerConfig) -> AirflowClient:
    """Pick the client implementation matching the server's Airflow version"""
    try:
        client_cls = _CLIENTS_BY_VERSION[server.version]
    except KeyError:
        raise ValueError(f'Unsupported Airflow version: {server.version}')
    return client_cls(server)


class ClientRegistry:
    """One lazily created client per configured server name"""

    def __init__(self, servers: Dict[str, ServerConfig], factory=create_client):
        self._servers = dict(servers)
        self._factory = factory
        self._clients: Dict[str, AirflowClient] = {}
        self._lock = threading.Lock()

    def get(self, server_name: str) -> AirflowClient:
        with self._lock:
            client = self._clients.get(server_name)
            if client is None:
                try:
                    server = self._servers[server_name]
                except KeyError:
                    raise KeyError(f'No server named {server_name!r} is configured')
                client = self._factory(server)
                self._clients[server_name] = client
                logger.debug('Created %r', client)
            return client

    __call__ = get

    def close(self):
        with self._lock:
            for client in self._clients.values():
                client.close()
            self._clients.clear()


__all__ = [
    'AirflowAPIError',
    'AirflowAuthenticationError',
    'AirflowClient',
    'AirflowNotFoundError',
    'AirflowV1Client',
    'AirflowV2Client',
    'ClientRegistry',
    'DagdashClientError',
    'TokenCommandError',
    'create_client',
]
