"""Authenticators that attach gateway credentials to outgoing requests."""

import base64
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

import httpx

from ..utils.exceptions import AuthenticationFailure


class Authenticator(ABC):
    """Attaches credentials to a request before it is sent.

    Implementations mutate the request in place and raise
    AuthenticationFailure when no credentials can be produced.
    """

    @abstractmethod
    def set(self, request: httpx.Request) -> None:
        pass


class NoAuth(Authenticator):
    """Leaves requests untouched."""

    def set(self, request: httpx.Request) -> None:
        return None


class BasicAuth(Authenticator):
    """HTTP basic authentication."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def set(self, request: httpx.Request) -> None:
        if not self.username:
            raise AuthenticationFailure("basic auth requires a username")
        userpass = f"{self.username}:{self.password}".encode("utf-8")
        token = base64.b64encode(userpass).decode("ascii")
        request.headers["Authorization"] = f"Basic {token}"


class BearerTokenAuth(Authenticator):
    """Bearer token authentication.

    Args:
        token: Either the token itself or a callable returning it. A callable
            is invoked for every request, so it can read a refreshed token.
    """

    def __init__(self, token: Union[str, Callable[[], Optional[str]]]):
        self.token = token

    def set(self, request: httpx.Request) -> None:
        token = self.token() if callable(self.token) else self.token
        if not token:
            raise AuthenticationFailure("no bearer token available")
        request.headers["Authorization"] = f"Bearer {token}"
