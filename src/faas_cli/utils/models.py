"""
Pydantic models for the gateway's function API
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FunctionResources(BaseModel):
    """Memory and CPU figures for limits or requests"""
    model_config = ConfigDict(populate_by_name=True)

    memory: Optional[str] = Field(None, description="Memory quantity, e.g. '128Mi'")
    cpu: Optional[str] = Field(None, description="CPU quantity, e.g. '100m'")

    def is_empty(self) -> bool:
        return not self.memory and not self.cpu


class FunctionUsage(BaseModel):
    """Resource usage reported by the gateway"""
    model_config = ConfigDict(populate_by_name=True)

    cpu: float = Field(default=0, description="CPU usage")
    total_memory_bytes: float = Field(default=0, alias="totalMemoryBytes",
                                      description="Total memory usage in bytes")


class FunctionStatus(BaseModel):
    """A deployed function as described by the gateway"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., description="Name of the function")
    image: str = Field(default="", description="Container image of the function")
    namespace: Optional[str] = Field(None, description="Namespace of the function")
    env_process: Optional[str] = Field(None, alias="envProcess",
                                       description="Process the watchdog forks")
    env_vars: Dict[str, str] = Field(default_factory=dict, alias="envVars",
                                     description="Environment variables")
    constraints: List[str] = Field(default_factory=list, description="Placement constraints")
    secrets: List[str] = Field(default_factory=list, description="Secret names")
    labels: Optional[Dict[str, str]] = Field(None, description="Function labels")
    annotations: Optional[Dict[str, str]] = Field(None, description="Function annotations")
    limits: Optional[FunctionResources] = Field(None, description="Resource limits")
    requests: Optional[FunctionResources] = Field(None, description="Resource requests")
    read_only_root_filesystem: bool = Field(default=False, alias="readOnlyRootFilesystem")
    invocation_count: float = Field(default=0, alias="invocationCount",
                                    description="Number of invocations")
    replicas: int = Field(default=0, description="Desired replica count")
    available_replicas: int = Field(default=0, alias="availableReplicas",
                                    description="Replicas ready to serve")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    usage: Optional[FunctionUsage] = Field(None, description="Resource usage")

    @field_validator('env_vars', mode='before')
    @classmethod
    def null_env_vars(cls, v):
        return v or {}

    @field_validator('constraints', 'secrets', mode='before')
    @classmethod
    def null_lists(cls, v):
        return v or []


class FunctionDeployment(BaseModel):
    """Request body for deploying or updating a function"""
    model_config = ConfigDict(populate_by_name=True)

    service: str = Field(..., description="Name of the function")
    image: str = Field(..., description="Container image to deploy")
    namespace: Optional[str] = Field(None, description="Target namespace")
    env_process: Optional[str] = Field(None, alias="envProcess")
    env_vars: Optional[Dict[str, str]] = Field(None, alias="envVars")
    constraints: Optional[List[str]] = None
    secrets: Optional[List[str]] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None
    limits: Optional[FunctionResources] = None
    requests: Optional[FunctionResources] = None
    read_only_root_filesystem: bool = Field(default=False, alias="readOnlyRootFilesystem")

    @field_validator('service', 'image')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('must not be empty')
        return v.strip()

    def to_payload(self) -> Dict[str, Any]:
        """Encode as the gateway's JSON body, leaving out unset fields."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        for key in ('envVars', 'constraints', 'secrets', 'labels', 'annotations'):
            if key in payload and not payload[key]:
                del payload[key]
        for key in ('limits', 'requests'):
            if key in payload and not payload[key]:
                del payload[key]
        if not payload.get('readOnlyRootFilesystem'):
            payload.pop('readOnlyRootFilesystem', None)
        return payload
