"""HTTP client for the function gateway.

Every gateway operation goes through ``Client.new_request`` and
``Client.do_request`` so that URL joining, credentials, tracing and
error translation behave the same way for all of them.
"""

import sys
import json
import asyncio
import logging
import posixpath
from typing import IO, Any, Dict, Mapping, Optional, Union

import httpx

from .. import __version__
from .auth import Authenticator, NoAuth
from ..utils.config import ClientSettings
from ..utils.exceptions import (
    AuthenticationFailure, DeadlineExceeded, InvalidURL, TransportFailure
)

logger = logging.getLogger(__name__)

Body = Union[bytes, str, Dict[str, Any], list, IO[bytes], IO[str]]

_REDACTABLE_SCHEMES = ("Basic", "Bearer")


def redact_authorization(value: Optional[str]) -> str:
    """Reduce an Authorization header value to its scheme."""
    if not value:
        return "NOT_SET"
    scheme, sep, _ = value.partition(" ")
    if sep and scheme in _REDACTABLE_SCHEMES:
        return f"{scheme} REDACTED"
    return "REDACTED"


def dump_request(request: httpx.Request) -> str:
    """Render a request the way it goes over the wire as HTTP/1.1."""
    lines = [f"{request.method} {request.url.raw_path.decode('ascii')} HTTP/1.1"]
    for key, value in request.headers.raw:
        lines.append(f"{key.decode('latin-1')}: {value.decode('latin-1')}")
    body = request.content.decode("utf-8", errors="replace")
    return "\r\n".join(lines) + "\r\n\r\n" + body


def _encode_body(body: Body) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (dict, list)):
        return json.dumps(body).encode("utf-8")
    if hasattr(body, "read"):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else data
    raise TypeError(f"unsupported request body type: {type(body).__name__}")


class Client:
    """API client for a function gateway.

    Debug traces (settings.debug) and raw dumps (settings.dump_http) are
    written to trace_stream, which defaults to stderr rather than stdout so
    command output stays parseable while tracing is on.

    Args:
        auth: Authenticator applied to every request
        gateway_url: Base URL of the gateway, optionally with a path prefix
        transport: httpx transport override, mainly for tests and proxies
        timeout: Default timeout in seconds, settings.timeout when omitted
        settings: Tracing switches, resolved once by the caller
        trace_stream: Where debug traces and dumps go, stderr when omitted

    Raises:
        InvalidURL: If gateway_url is not an http(s) URL with a host
    """

    def __init__(self, auth: Optional[Authenticator], gateway_url: str,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: Optional[float] = None,
                 settings: Optional[ClientSettings] = None,
                 trace_stream: Optional[IO[str]] = None):
        self.auth = auth or NoAuth()
        self.settings = settings or ClientSettings()
        self.trace_stream = trace_stream
        self.user_agent = f"faas-cli/{__version__}"
        self.gateway_url = self._parse_gateway(gateway_url)
        self.timeout = self.settings.timeout if timeout is None else timeout
        self.follow_redirects = True

        self._http = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=self.follow_redirects,
        )

    @staticmethod
    def _parse_gateway(gateway_url: str) -> httpx.URL:
        stripped = (gateway_url or "").strip().rstrip("/")
        try:
            url = httpx.URL(stripped)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise InvalidURL(gateway_url) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURL(gateway_url)
        return url

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_redirect_policy(self, follow_redirects: bool,
                            max_redirects: Optional[int] = None) -> None:
        """Override redirect handling, e.g. to probe endpoints without following."""
        self.follow_redirects = follow_redirects
        if max_redirects is not None:
            self._http.max_redirects = max_redirects

    def _endpoint(self, path: str, query: Optional[Mapping[str, str]]) -> httpx.URL:
        # httpx.URL is immutable, copy_with hands back a new instance
        base_path = self.gateway_url.path or "/"
        joined = posixpath.normpath(posixpath.join(base_path, path.lstrip("/")))
        params = sorted(query.items()) if query else None
        return self.gateway_url.copy_with(path=joined, params=params)

    def new_request(self, method: str, path: str,
                    query: Optional[Mapping[str, str]] = None,
                    body: Optional[Body] = None,
                    headers: Optional[Mapping[str, str]] = None) -> httpx.Request:
        """Build an authenticated request for a path relative to the gateway."""
        endpoint = self._endpoint(path, query)

        content = None
        request_headers = {"User-Agent": self.user_agent}
        if body is not None:
            content = _encode_body(body)
            request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)

        request = self._http.build_request(method, endpoint,
                                           headers=request_headers, content=content)

        try:
            self.auth.set(request)
        except AuthenticationFailure:
            raise
        except Exception as e:
            raise AuthenticationFailure(f"unable to set credentials: {e}") from e

        if self.settings.debug:
            self._trace(self._describe(request))

        return request

    async def do_request(self, request: httpx.Request,
                         timeout: Optional[float] = None) -> httpx.Response:
        """Send a request, optionally bounded by a deadline in seconds.

        Raises:
            DeadlineExceeded: If the deadline passed before the response arrived
            TransportFailure: On any other network-level failure
        """
        if self.settings.dump_http:
            self._trace(dump_request(request) + "\n")

        logger.debug(f"{request.method} {request.url}")
        sending = self._http.send(request, follow_redirects=self.follow_redirects)
        try:
            if timeout is None:
                return await sending
            try:
                return await asyncio.wait_for(sending, timeout)
            except asyncio.TimeoutError as e:
                raise DeadlineExceeded(timeout) from e
        except httpx.RequestError as e:
            raise TransportFailure(f"{request.method} {request.url}: {e}") from e

    def _describe(self, request: httpx.Request) -> str:
        lines = [f"{request.method} {request.url}"]
        for raw_key, raw_value in request.headers.raw:
            key = raw_key.decode("latin-1")
            value = raw_value.decode("latin-1")
            if key.lower() == "authorization":
                value = redact_authorization(value)
            lines.append(f"{key}: {value}")
        if request.content:
            lines.append(request.content.decode("utf-8", errors="replace"))
        return "\n".join(lines) + "\n"

    def _trace(self, text: str) -> None:
        stream = self.trace_stream or sys.stderr
        stream.write(text)
        stream.flush()
