"""
Request authentication for Airflow servers
"""

import logging
import subprocess
from typing import Optional

import requests
from requests.auth import AuthBase, HTTPBasicAuth

from ..config import AuthConfig, BasicAuth, TokenAuth
from .exceptions import TokenCommandError

logger = logging.getLogger(__name__)


class BearerAuth(AuthBase):
    """Static bearer token"""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers['Authorization'] = f'Bearer {self.token}'
        return request


class CommandTokenAuth(AuthBase):
    """Bearer token printed by a shell command, fetched for every request"""

    def __init__(self, cmd: str, timeout: int = 30):
        self.cmd = cmd
        self.timeout = timeout

    def fetch_token(self) -> str:
        logger.debug("Running token helper: %s", self.cmd)
        try:
            result = subprocess.run(
                self.cmd,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise TokenCommandError(f'Token helper timed out after {self.timeout}s') from e
        if result.returncode != 0:
            raise TokenCommandError(
                f'Token helper failed with exit code {result.returncode}: {result.stderr.strip()}'
            )
        return result.stdout.strip().strip('"')

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers['Authorization'] = f'Bearer {self.fetch_token()}'
        return request


def create_auth(auth: Optional[AuthConfig]) -> Optional[AuthBase]:
    """Build the requests auth handler for a server's auth config"""
    if auth is None:
        return None
    if isinstance(auth, BasicAuth):
        return HTTPBasicAuth(auth.username, auth.password)
    if isinstance(auth, TokenAuth):
        if auth.cmd:
            return CommandTokenAuth(auth.cmd)
        return BearerAuth(auth.token or '')
    raise TypeError(f'Unsupported auth config: {auth!r}')
