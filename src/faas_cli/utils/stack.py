"""
Stack file loading

A stack file names the gateway and the functions to deploy:

    provider:
      name: openfaas
      gateway: http://127.0.0.1:8080
    functions:
      figlet:
        image: ghcr.io/openfaas/figlet:latest
        environment:
          write_debug: true
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import FunctionDeployment, FunctionResources
from .exceptions import StackFileError

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        # YAML turns `true` into a bool, the gateway expects "true"
        return str(value).lower()
    return str(value)


def _stringify_map(v: Any) -> Any:
    if isinstance(v, dict):
        return {str(k): _stringify(val) for k, val in v.items()}
    return v


class StackProvider(BaseModel):
    """Provider section of a stack file"""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="openfaas")
    gateway: Optional[str] = None


class StackFunction(BaseModel):
    """One entry of the functions section"""
    model_config = ConfigDict(extra="ignore")

    image: str
    namespace: Optional[str] = None
    fprocess: Optional[str] = None
    environment: Dict[str, str] = Field(default_factory=dict)
    secrets: List[str] = Field(default_factory=list)
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    constraints: List[str] = Field(default_factory=list)
    limits: Optional[FunctionResources] = None
    requests: Optional[FunctionResources] = None
    readonly_root_filesystem: bool = False

    @field_validator('environment', 'labels', 'annotations', mode='before')
    @classmethod
    def coerce_map(cls, v):
        return _stringify_map(v) or {}

    @field_validator('secrets', 'constraints', mode='before')
    @classmethod
    def coerce_list(cls, v):
        return v or []

    def to_deployment(self, name: str, namespace: str = "") -> FunctionDeployment:
        return FunctionDeployment(
            service=name,
            image=self.image,
            namespace=namespace or self.namespace,
            env_process=self.fprocess,
            env_vars=self.environment,
            constraints=self.constraints,
            secrets=self.secrets,
            labels=self.labels,
            annotations=self.annotations,
            limits=self.limits,
            requests=self.requests,
            read_only_root_filesystem=self.readonly_root_filesystem,
        )


class Stack(BaseModel):
    """Parsed stack file"""
    model_config = ConfigDict(extra="ignore")

    provider: StackProvider = Field(default_factory=StackProvider)
    functions: Dict[str, StackFunction] = Field(default_factory=dict)

    def deployments(self, namespace: str = "",
                    only: Optional[str] = None) -> List[FunctionDeployment]:
        """Deployment specs for every function, or just the one named by only."""
        names = sorted(self.functions)
        if only:
            if only not in self.functions:
                raise StackFileError(f"no function named '{only}' in stack file")
            names = [only]
        try:
            return [self.functions[name].to_deployment(name, namespace) for name in names]
        except ValidationError as e:
            raise StackFileError(f"invalid function in stack file: {e}") from e


def parse_stack(content: str) -> Stack:
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise StackFileError(f"invalid YAML in stack file: {e}") from e
    if not isinstance(data, dict):
        raise StackFileError("stack file must contain a mapping")
    try:
        return Stack.model_validate(data)
    except ValidationError as e:
        raise StackFileError(f"invalid stack file: {e}") from e


def load_stack(path: Union[str, Path]) -> Stack:
    stack_path = Path(path)
    if not stack_path.exists():
        raise StackFileError(f"stack file {stack_path} not found")

    logger.debug(f"Loading stack file {stack_path}")
    with open(stack_path, 'r', encoding='utf-8') as f:
        return parse_stack(f.read())
