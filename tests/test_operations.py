"""
Unit tests for the gateway proxy operations.
"""

import json
import unittest

import httpx

from faas_cli.proxy.auth import NoAuth
from faas_cli.proxy.client import Client
from faas_cli.proxy.operations import GatewayProxy
from faas_cli.utils.models import FunctionDeployment, FunctionResources, FunctionStatus
from faas_cli.utils.exceptions import (
    InvalidResponse, NoSuchFunction, UnexpectedStatus
)

GATEWAY = "http://127.0.0.1:8080"

FUNCTION_INFO = {
    "name": "func-test1",
    "image": "image-test1",
    "replicas": 1,
    "invocationCount": 1,
    "envProcess": "env-process test1",
}

FUNCTION_LIST = [
    FUNCTION_INFO,
    {
        "name": "func-test2",
        "image": "image-test2",
        "replicas": 2,
        "invocationCount": 2,
        "envProcess": "env-process test2",
    },
]


class ProxyTestCase(unittest.IsolatedAsyncioTestCase):
    """Routes every request to self.respond and keeps what was sent."""

    def setUp(self):
        self.requests = []
        self.status_code = 200
        self.response_body = None
        self.raw_content = None

    def respond(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw_content is not None:
            return httpx.Response(self.status_code, content=self.raw_content)
        if self.response_body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.response_body)

    async def asyncSetUp(self):
        self.client = Client(NoAuth(), GATEWAY, transport=httpx.MockTransport(self.respond))
        self.proxy = GatewayProxy(self.client)

    async def asyncTearDown(self):
        await self.client.aclose()


class TestGetFunctionInfo(ProxyTestCase):
    """Test single-function lookups."""

    async def test_get_function_info(self):
        """Test a 200 response is decoded into a FunctionStatus."""
        self.response_body = FUNCTION_INFO

        result = await self.proxy.get_function_info("func-test1")

        self.assertEqual(result, FunctionStatus.model_validate(FUNCTION_INFO))
        self.assertEqual(result.env_process, "env-process test1")
        self.assertEqual(self.requests[0].method, "GET")
        self.assertEqual(self.requests[0].url.path, "/system/function/func-test1")

    async def test_get_function_info_namespace(self):
        """Test the namespace is sent as a query parameter."""
        self.response_body = FUNCTION_INFO
        await self.proxy.get_function_info("func-test1", namespace="staging")
        self.assertEqual(self.requests[0].url.params["namespace"], "staging")

    async def test_get_function_info_not_200(self):
        """Test non-200 responses raise UnexpectedStatus."""
        self.status_code = 400

        with self.assertRaises(UnexpectedStatus) as ctx:
            await self.proxy.get_function_info("func-test1")
        self.assertIn("server returned unexpected status code", str(ctx.exception))
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_get_function_info_not_found(self):
        """Test 404 raises NoSuchFunction with the function name."""
        self.status_code = 404

        with self.assertRaises(NoSuchFunction) as ctx:
            await self.proxy.get_function_info("funct-test")
        self.assertEqual(str(ctx.exception), "no such function: funct-test")
        self.assertNotIsInstance(ctx.exception, UnexpectedStatus)

    async def test_get_function_info_escapes_name(self):
        """Test reserved characters in a name stay inside the function path segment."""
        self.status_code = 404

        for name in ("fn?x=1", "a#b", "../functions", ".."):
            with self.assertRaises(NoSuchFunction) as ctx:
                await self.proxy.get_function_info(name)
            self.assertEqual(str(ctx.exception), f"no such function: {name}")

        raw_paths = [request.url.raw_path for request in self.requests]
        self.assertEqual(raw_paths[0], b"/system/function/fn%3Fx%3D1")
        self.assertEqual(raw_paths[1], b"/system/function/a%23b")
        self.assertEqual(raw_paths[2], b"/system/function/..%2Ffunctions")
        self.assertTrue(raw_paths[3].startswith(b"/system/function/"))
        self.assertNotEqual(self.requests[3].url.path, "/system")
        for request in self.requests:
            self.assertEqual(request.url.query, b"")

    async def test_get_function_info_invalid_body(self):
        """Test an undecodable body raises InvalidResponse."""
        self.response_body = ["not", "a", "function"]
        with self.assertRaises(InvalidResponse):
            await self.proxy.get_function_info("func-test1")


class TestListFunctions(ProxyTestCase):
    """Test function listing."""

    async def test_list_functions(self):
        """Test a 200 response is decoded into FunctionStatus objects."""
        self.response_body = FUNCTION_LIST

        result = await self.proxy.list_functions()

        self.assertEqual(len(result), 2)
        for want, got in zip(FUNCTION_LIST, result):
            self.assertEqual(got, FunctionStatus.model_validate(want))
        self.assertEqual(self.requests[0].url.path, "/system/functions")
        self.assertEqual(self.requests[0].url.query, b"")

    async def test_list_functions_namespace(self):
        """Test listing is scoped by namespace when one is given."""
        self.response_body = []
        await self.proxy.list_functions("openfaas-fn")
        self.assertEqual(self.requests[0].url.params["namespace"], "openfaas-fn")

    async def test_list_functions_not_200(self):
        """Test non-200 responses raise UnexpectedStatus."""
        self.status_code = 400
        with self.assertRaises(UnexpectedStatus) as ctx:
            await self.proxy.list_functions()
        self.assertIn("server returned unexpected status code", str(ctx.exception))

    async def test_list_functions_malformed_json(self):
        """Test a malformed body raises InvalidResponse."""
        self.raw_content = b"{not json"

        with self.assertRaises(InvalidResponse):
            await self.proxy.list_functions()


class TestDeployFunction(ProxyTestCase):
    """Test function deployment."""

    def make_spec(self, **kwargs) -> FunctionDeployment:
        return FunctionDeployment(service="test-function", image="golang", **kwargs)

    async def test_deploy_put(self):
        """Test deploy uses PUT with the JSON deployment body and returns the status code."""
        spec = self.make_spec(
            env_vars={"write_debug": "true"},
            labels={"com.openfaas.scale.min": "2"},
            limits=FunctionResources(memory="128Mi"),
        )

        status_code = await self.proxy.deploy_function(spec)

        self.assertEqual(status_code, 200)
        request = self.requests[0]
        self.assertEqual(request.method, "PUT")
        self.assertEqual(request.url.path, "/system/functions")
        self.assertEqual(request.headers["Content-Type"], "application/json")
        self.assertEqual(json.loads(request.content), {
            "service": "test-function",
            "image": "golang",
            "envVars": {"write_debug": "true"},
            "labels": {"com.openfaas.scale.min": "2"},
            "limits": {"memory": "128Mi"},
        })

    async def test_deploy_post(self):
        """Test update=False creates with POST."""
        self.status_code = 202
        status_code = await self.proxy.deploy_function(self.make_spec(), update=False)
        self.assertEqual(status_code, 202)
        self.assertEqual(self.requests[0].method, "POST")

    async def test_deploy_failure_returns_status(self):
        """Test failures are returned, not raised, so a batch can continue."""
        self.status_code = 500
        status_code = await self.proxy.deploy_function(self.make_spec())
        self.assertEqual(status_code, 500)

    async def test_deployed_name_round_trip(self):
        """Test the name sent on deploy comes back unchanged on lookup."""
        deployed = {}

        def gateway(request):
            if request.method == "PUT":
                deployed.update(json.loads(request.content))
                return httpx.Response(202)
            return httpx.Response(200, json={"name": deployed["service"],
                                             "image": deployed["image"]})

        async with Client(NoAuth(), GATEWAY, transport=httpx.MockTransport(gateway)) as client:
            proxy = GatewayProxy(client)
            spec = self.make_spec()
            await proxy.deploy_function(spec)
            info = await proxy.get_function_info(spec.service)

        self.assertEqual(info.name, spec.service)
        self.assertEqual(info.image, spec.image)


class TestDeleteFunction(ProxyTestCase):
    """Test function removal."""

    async def test_delete_function(self):
        """Test delete sends the function name in the body."""
        self.status_code = 202
        await self.proxy.delete_function("figlet", namespace="dev")

        request = self.requests[0]
        self.assertEqual(request.method, "DELETE")
        self.assertEqual(request.url.path, "/system/functions")
        self.assertEqual(json.loads(request.content),
                         {"functionName": "figlet", "namespace": "dev"})

    async def test_delete_missing_function(self):
        """Test 404 raises NoSuchFunction."""
        self.status_code = 404
        with self.assertRaises(NoSuchFunction):
            await self.proxy.delete_function("figlet")

    async def test_delete_unexpected_status(self):
        """Test other failures raise UnexpectedStatus."""
        self.status_code = 500
        with self.assertRaises(UnexpectedStatus):
            await self.proxy.delete_function("figlet")


class TestListNamespaces(ProxyTestCase):
    """Test namespace listing."""

    async def test_list_namespaces(self):
        """Test namespaces are decoded from a JSON array."""
        self.response_body = ["openfaas-fn", "staging"]
        result = await self.proxy.list_namespaces()
        self.assertEqual(result, ["openfaas-fn", "staging"])
        self.assertEqual(self.requests[0].url.path, "/system/namespaces")

    async def test_list_namespaces_unauthorized(self):
        """Test a 401 raises UnexpectedStatus."""
        self.status_code = 401
        with self.assertRaises(UnexpectedStatus) as ctx:
            await self.proxy.list_namespaces()
        self.assertEqual(ctx.exception.status_code, 401)


if __name__ == '__main__':
    unittest.main()
