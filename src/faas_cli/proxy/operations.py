"""Gateway operations built on the HTTP client.

Each operation is a single request/response round trip. Status codes are
interpreted here; nothing is retried.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from .client import Client
from ..utils.models import FunctionDeployment, FunctionStatus
from ..utils.exceptions import InvalidResponse, NoSuchFunction, UnexpectedStatus

logger = logging.getLogger(__name__)

FUNCTIONS_PATH = "/system/functions"
FUNCTION_PATH = "/system/function"
NAMESPACES_PATH = "/system/namespaces"

_function_list = TypeAdapter(List[FunctionStatus])
_function_status = TypeAdapter(FunctionStatus)
_namespace_list = TypeAdapter(List[str])


def _path_segment(name: str) -> str:
    # quote leaves "." and ".." as they are and those collapse when the path is normalised
    segment = quote(name, safe="")
    if segment in (".", ".."):
        return segment.replace(".", "%2E")
    return segment


def _namespace_query(namespace: Optional[str]) -> dict:
    return {"namespace": namespace} if namespace else {}


def _decode(response: httpx.Response, adapter: TypeAdapter) -> Any:
    try:
        return adapter.validate_json(response.content)
    except ValidationError as e:
        raise InvalidResponse(
            f"cannot parse result from gateway on URL: {response.request.url}\n{e}"
        ) from e


class GatewayProxy:
    """Function management operations against a gateway."""

    def __init__(self, client: Client):
        self.client = client

    async def list_functions(self, namespace: str = "",
                             timeout: Optional[float] = None) -> List[FunctionStatus]:
        request = self.client.new_request("GET", FUNCTIONS_PATH,
                                          query=_namespace_query(namespace))
        response = await self.client.do_request(request, timeout=timeout)

        if response.status_code != httpx.codes.OK:
            raise UnexpectedStatus(response.status_code, response.text)
        return _decode(response, _function_list)

    async def get_function_info(self, function_name: str, namespace: str = "",
                                timeout: Optional[float] = None) -> FunctionStatus:
        path = f"{FUNCTION_PATH}/{_path_segment(function_name)}"
        request = self.client.new_request("GET", path,
                                          query=_namespace_query(namespace))
        response = await self.client.do_request(request, timeout=timeout)

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NoSuchFunction(function_name)
        if response.status_code != httpx.codes.OK:
            raise UnexpectedStatus(response.status_code, response.text)
        return _decode(response, _function_status)

    async def deploy_function(self, spec: FunctionDeployment, update: bool = True,
                              timeout: Optional[float] = None) -> int:
        """Create or update a function.

        Returns the gateway's status code instead of raising on failure so a
        batch deploy can carry on with the remaining functions.

        Args:
            spec: Deployment body
            update: PUT to update an existing function, otherwise POST to create
            timeout: Optional deadline in seconds
        """
        method = "PUT" if update else "POST"
        request = self.client.new_request(method, FUNCTIONS_PATH, body=spec.to_payload())
        response = await self.client.do_request(request, timeout=timeout)

        if response.status_code not in (httpx.codes.OK, httpx.codes.ACCEPTED):
            logger.error(f"Deploying '{spec.service}' failed with status "
                         f"{response.status_code}: {response.text.strip()}")
        else:
            logger.info(f"Deployment request for '{spec.service}' accepted.")
        return response.status_code

    async def delete_function(self, function_name: str, namespace: str = "",
                              timeout: Optional[float] = None) -> None:
        body = {"functionName": function_name}
        if namespace:
            body["namespace"] = namespace
        request = self.client.new_request("DELETE", FUNCTIONS_PATH, body=body)
        response = await self.client.do_request(request, timeout=timeout)

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NoSuchFunction(function_name)
        if response.status_code not in (httpx.codes.OK, httpx.codes.ACCEPTED):
            raise UnexpectedStatus(response.status_code, response.text)

    async def list_namespaces(self, timeout: Optional[float] = None) -> List[str]:
        request = self.client.new_request("GET", NAMESPACES_PATH)
        response = await self.client.do_request(request, timeout=timeout)

        if response.status_code != httpx.codes.OK:
            raise UnexpectedStatus(response.status_code, response.text)
        return _decode(response, _namespace_list)
