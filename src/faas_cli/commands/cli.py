"""
faas-cli command line entry point

Usage:
    faas-cli deploy -f stack.yml
    faas-cli deploy --image ghcr.io/openfaas/figlet:latest --name figlet
    faas-cli list -v
    faas-cli describe figlet
    faas-cli remove figlet
    faas-cli namespaces
"""

import sys
import asyncio
import logging
import argparse
from http import HTTPStatus
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from .describe import (
    describe_function, format_function_description, format_function_list, get_function_urls
)
from ..proxy.client import Client
from ..proxy.operations import GatewayProxy
from ..proxy.deploy_results import DeployResults, bad_status_code
from ..utils.config import ClientSettings, resolve_authenticator, resolve_gateway
from ..utils.exceptions import FaasCliException, TransportFailure
from ..utils.models import FunctionDeployment
from ..utils.stack import Stack, load_stack

logger = logging.getLogger(__name__)


def _parse_pairs(values: Optional[List[str]], flag: str) -> Dict[str, str]:
    pairs = {}
    for value in values or []:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise FaasCliException(f"{flag} values must be KEY=VALUE, got '{value}'")
        pairs[key] = val
    return pairs


def _deployments_from_flags(args) -> List[FunctionDeployment]:
    if not args.image or not args.name:
        raise FaasCliException("--image and --name are required when no stack file is given")
    try:
        return [FunctionDeployment(
            service=args.name,
            image=args.image,
            namespace=args.namespace or None,
            env_process=args.fprocess,
            env_vars=_parse_pairs(args.env, "--env"),
            labels=_parse_pairs(args.label, "--label"),
            annotations=_parse_pairs(args.annotation, "--annotation"),
            secrets=args.secret or [],
            constraints=args.constraint or [],
            read_only_root_filesystem=args.readonly_root_filesystem,
        )]
    except ValidationError as e:
        raise FaasCliException(f"invalid deployment flags: {e}") from e


async def run_deploy(proxy: GatewayProxy, args, gateway: str, stack: Optional[Stack]) -> int:
    if stack is not None:
        specs = stack.deployments(args.namespace, only=args.filter)
    else:
        specs = _deployments_from_flags(args)

    results = DeployResults()
    for spec in specs:
        print(f"Deploying: {spec.service}.")
        try:
            status_code = await proxy.deploy_function(spec, update=args.update)
        except TransportFailure as e:
            print(f"Unable to deploy {spec.service}: {e}")
            results.record(spec.service, httpx.codes.INTERNAL_SERVER_ERROR)
            continue
        results.record(spec.service, status_code)

        if bad_status_code(status_code):
            print(f"Unexpected status: {status_code}")
            continue

        url, _ = get_function_urls(gateway, spec.service, spec.namespace or "")
        print(f"\nDeployed. {status_code} {HTTPStatus(status_code).phrase}.\nURL: {url}\n")

    failure = results.failure()
    if failure is not None:
        raise failure
    return 0


async def run_list(proxy: GatewayProxy, args, gateway: str, stack: Optional[Stack]) -> int:
    functions = await proxy.list_functions(args.namespace)
    print(format_function_list(functions, verbose=args.verbose, sort_by=args.sort), end="")
    return 0


async def run_describe(proxy: GatewayProxy, args, gateway: str, stack: Optional[Stack]) -> int:
    function = await proxy.get_function_info(args.name, args.namespace)
    description = describe_function(function, gateway, args.namespace)
    print(format_function_description(description, verbose=args.verbose), end="")
    return 0


async def run_remove(proxy: GatewayProxy, args, gateway: str, stack: Optional[Stack]) -> int:
    print(f"Deleting: {args.name}.")
    await proxy.delete_function(args.name, args.namespace)
    print("Removed.")
    return 0


async def run_namespaces(proxy: GatewayProxy, args, gateway: str, stack: Optional[Stack]) -> int:
    namespaces = await proxy.list_namespaces()
    print("Namespaces:")
    for namespace in namespaces:
        print(f" - {namespace}")
    return 0


def _add_gateway_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-g", "--gateway", help="Gateway URL, e.g. http://127.0.0.1:8080")
    parser.add_argument("-n", "--namespace", default="", help="Namespace of the function")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="faas-cli",
                                     description="Manage functions on a function gateway")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    deploy = subparsers.add_parser("deploy", help="Deploy functions")
    _add_gateway_args(deploy)
    deploy.add_argument("-f", "--yaml", help="Path to a stack file")
    deploy.add_argument("--filter", help="Only deploy this function from the stack file")
    deploy.add_argument("--image", help="Container image to deploy")
    deploy.add_argument("--name", help="Name of the function")
    deploy.add_argument("--fprocess", help="Process run by the function watchdog")
    deploy.add_argument("-e", "--env", action="append", help="Environment variable KEY=VALUE")
    deploy.add_argument("-l", "--label", action="append", help="Label KEY=VALUE")
    deploy.add_argument("--annotation", action="append", help="Annotation KEY=VALUE")
    deploy.add_argument("--secret", action="append", help="Secret to mount")
    deploy.add_argument("--constraint", action="append", help="Placement constraint")
    deploy.add_argument("--readonly-root-filesystem", action="store_true",
                        help="Mount the function's root filesystem read-only")
    deploy.add_argument("--update", action=argparse.BooleanOptionalAction, default=True,
                        help="Update with PUT (default) instead of creating with POST")
    deploy.set_defaults(handler=run_deploy)

    list_cmd = subparsers.add_parser("list", aliases=["ls"], help="List deployed functions")
    _add_gateway_args(list_cmd)
    list_cmd.add_argument("-v", "--verbose", action="store_true", help="Include image names")
    list_cmd.add_argument("--sort", choices=["name", "invocations"], default="name")
    list_cmd.set_defaults(handler=run_list)

    describe = subparsers.add_parser("describe", help="Describe a deployed function")
    _add_gateway_args(describe)
    describe.add_argument("name", help="Name of the function")
    describe.add_argument("-v", "--verbose", action="store_true", help="Show empty sections too")
    describe.set_defaults(handler=run_describe)

    remove = subparsers.add_parser("remove", aliases=["rm"], help="Remove a deployed function")
    _add_gateway_args(remove)
    remove.add_argument("name", help="Name of the function")
    remove.set_defaults(handler=run_remove)

    namespaces = subparsers.add_parser("namespaces", help="List gateway namespaces")
    _add_gateway_args(namespaces)
    namespaces.set_defaults(handler=run_namespaces)

    return parser


async def _run(args, transport: Optional[httpx.AsyncBaseTransport]) -> int:
    settings = ClientSettings.from_env()
    stack = load_stack(args.yaml) if getattr(args, "yaml", None) else None
    gateway = resolve_gateway(args.gateway, stack.provider.gateway if stack else None)
    logger.debug(f"Using gateway {gateway}")

    async with Client(resolve_authenticator(), gateway, transport=transport,
                      timeout=args.timeout, settings=settings) as client:
        return await args.handler(GatewayProxy(client), args, gateway, stack)


def main(argv: Optional[List[str]] = None,
         transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if getattr(args, "handler", None) is None:
        parser.print_help()
        return 1

    try:
        return asyncio.run(_run(args, transport))
    except FaasCliException as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
