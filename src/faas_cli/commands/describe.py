"""Text rendering of gateway results for the terminal."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..utils.models import FunctionResources, FunctionStatus, FunctionUsage

KEY_WIDTH = 21
NONE = "<none>"


@dataclass
class FunctionDescription:
    """A function status plus what the describe command derives from it."""
    function: FunctionStatus
    status: str
    url: str = ""
    async_url: str = ""


def get_function_urls(gateway: str, function_name: str, namespace: str = "") -> Tuple[str, str]:
    """Synchronous and asynchronous invocation URLs for a function."""
    gateway = gateway.rstrip("/")
    target = f"{function_name}.{namespace}" if namespace else function_name
    return f"{gateway}/function/{target}", f"{gateway}/async-function/{target}"


def describe_function(function: FunctionStatus, gateway: str,
                      namespace: str = "") -> FunctionDescription:
    status = "Ready" if function.available_replicas > 0 else "Not Ready"
    url, async_url = get_function_urls(gateway, function.name,
                                       namespace or function.namespace or "")
    return FunctionDescription(function=function, status=status, url=url, async_url=async_url)


class _Rows:

    def __init__(self, verbose: bool):
        self.verbose = verbose
        self.lines: List[str] = []

    def row(self, key: str, value) -> None:
        self.lines.append(f"{key:<{KEY_WIDTH}}{value}")

    def none(self, key: str) -> None:
        if self.verbose:
            self.row(key, NONE)

    def scalar(self, key: str, value: str) -> None:
        if value:
            self.row(key, value)
        else:
            self.none(key)

    def mapping(self, key: str, values: Optional[Dict[str, str]]) -> None:
        if not values:
            self.none(key)
            return
        self.lines.append(key)
        for name in sorted(values):
            self.lines.append(f" {name}: {values[name]}")

    def sequence(self, key: str, values: List[str]) -> None:
        if not values:
            self.none(key)
            return
        self.lines.append(key)
        for value in values:
            self.lines.append(f" - {value}")

    def resources(self, key: str, resources: Optional[FunctionResources]) -> None:
        if resources is None or resources.is_empty():
            self.none(key)
            return
        self.lines.append(key)
        if resources.memory:
            self.lines.append(f" memory: {resources.memory}")
        if resources.cpu:
            self.lines.append(f" cpu: {resources.cpu}")

    def usage(self, usage: Optional[FunctionUsage]) -> None:
        if usage is None:
            self.none("Usage:")
            return
        self.lines.append("Usage:")
        self.lines.append(f" RAM: {usage.total_memory_bytes / 1024 / 1024:.2f} MB")
        self.lines.append(f" CPU: {usage.cpu:.0f} Mi")


def format_function_description(description: FunctionDescription, verbose: bool = False) -> str:
    """Render a function description.

    Name through Function Process are always shown. The remaining sections
    are shown when they have content; in verbose mode empty ones print
    ``<none>`` instead of being left out.
    """
    function = description.function
    rows = _Rows(verbose)

    rows.row("Name:", function.name)
    rows.row("Status:", description.status)
    rows.row("Replicas:", function.replicas)
    rows.row("Available Replicas:", function.available_replicas)
    rows.row("Invocations:", int(function.invocation_count))
    rows.row("Image:", function.image)
    rows.row("Function Process:", function.env_process or "<default>")
    rows.scalar("URL:", description.url)
    rows.scalar("Async URL:", description.async_url)
    rows.mapping("Labels:", function.labels)
    rows.mapping("Annotations:", function.annotations)
    rows.sequence("Constraints:", function.constraints)
    rows.mapping("Environment:", function.env_vars)
    rows.sequence("Secrets:", function.secrets)
    rows.resources("Requests:", function.requests)
    rows.resources("Limits:", function.limits)
    rows.usage(function.usage)

    return "\n".join(rows.lines) + "\n"


def format_function_list(functions: List[FunctionStatus], verbose: bool = False,
                         sort_by: str = "name") -> str:
    """Render the function listing table."""
    if sort_by == "invocations":
        ordered = sorted(functions, key=lambda f: (-f.invocation_count, f.name))
    else:
        ordered = sorted(functions, key=lambda f: f.name)

    if verbose:
        lines = [f"{'Function':<30}\t{'Image':<40}\t{'Invocations':<15}\t{'Replicas':<5}"]
        for f in ordered:
            lines.append(f"{f.name:<30}\t{f.image:<40}\t{int(f.invocation_count):<15}\t{f.replicas:<5}")
    else:
        lines = [f"{'Function':<30}\t{'Invocations':<15}\t{'Replicas':<5}"]
        for f in ordered:
            lines.append(f"{f.name:<30}\t{int(f.invocation_count):<15}\t{f.replicas:<5}")

    return "\n".join(line.rstrip() for line in lines) + "\n"
