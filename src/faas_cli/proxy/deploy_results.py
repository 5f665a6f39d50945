"""Collects per-function deploy outcomes and folds them into one error."""

import threading
from typing import Dict, Mapping, Optional

import httpx

from ..utils.exceptions import PartialDeployFailure

_GOOD_STATUS_CODES = (httpx.codes.OK, httpx.codes.ACCEPTED)


def bad_status_code(status_code: int) -> bool:
    return status_code not in _GOOD_STATUS_CODES


def deploy_failed(results: Mapping[str, int]) -> Optional[PartialDeployFailure]:
    """Return an error listing every failed function, or None if all succeeded."""
    failures = {name: code for name, code in results.items() if bad_status_code(code)}
    if not failures:
        return None
    return PartialDeployFailure(failures)


class DeployResults:
    """Thread-safe mapping of function name to deploy status code."""

    def __init__(self):
        self._results: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, function_name: str, status_code: int) -> None:
        with self._lock:
            self._results[function_name] = status_code

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._results)

    def failure(self) -> Optional[PartialDeployFailure]:
        return deploy_failed(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
