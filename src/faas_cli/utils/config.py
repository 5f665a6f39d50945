"""Client configuration resolved from the process environment.

Every switch is read once, when the command starts, and handed to the
client explicitly so nothing below the command layer looks at
``os.environ`` while requests are in flight.

Environment variables:
    FAAS_DEBUG           "1" traces each request (credentials redacted)
    OPENFAAS_DUMP_HTTP   "true" dumps each raw request before sending
    OPENFAAS_URL         gateway address
    OPENFAAS_USERNAME    basic-auth user, paired with OPENFAAS_PASSWORD
    OPENFAAS_PASSWORD    basic-auth password
    OPENFAAS_TOKEN       bearer token, used when no basic-auth pair is set
    FAAS_TIMEOUT         request timeout in seconds
"""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from ..proxy.auth import Authenticator, BasicAuth, BearerTokenAuth, NoAuth

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY = "http://127.0.0.1:8080"
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class ClientSettings:
    """Switches that change how the client talks to the gateway."""
    debug: bool = False
    dump_http: bool = False
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientSettings":
        env = os.environ if environ is None else environ

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get("FAAS_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid FAAS_TIMEOUT value: {raw_timeout!r}")

        return cls(
            debug=env.get("FAAS_DEBUG") == "1",
            dump_http=env.get("OPENFAAS_DUMP_HTTP") == "true",
            timeout=timeout,
        )


def resolve_gateway(flag_value: Optional[str] = None,
                    stack_value: Optional[str] = None,
                    environ: Optional[Mapping[str, str]] = None) -> str:
    """Pick the gateway address: flag, then stack file, then env, then default."""
    env = os.environ if environ is None else environ
    for candidate in (flag_value, stack_value, env.get("OPENFAAS_URL")):
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_GATEWAY


def resolve_authenticator(environ: Optional[Mapping[str, str]] = None) -> Authenticator:
    """Build an authenticator from the credentials found in the environment."""
    env = os.environ if environ is None else environ
    username = env.get("OPENFAAS_USERNAME")
    password = env.get("OPENFAAS_PASSWORD")
    token = env.get("OPENFAAS_TOKEN")

    if username and password:
        return BasicAuth(username, password)
    if token:
        return BearerTokenAuth(token)
    return NoAuth()
