from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Remote objects are forwarded exactly as the control plane serialized them.
RawObject = dict[str, Any]


class ClusterSnapshot(BaseModel):
    """Point-in-time summary of the cluster, recomputed on every request."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    control_plane_version: str
    node_count: int = Field(ge=0)
    node_ready_count: int = Field(ge=0)
    namespace_count: int = Field(ge=0)
    namespace_names: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_counts(self) -> "ClusterSnapshot":
        if self.node_ready_count > self.node_count:
            raise ValueError("node_ready_count cannot exceed node_count")
        if self.namespace_count != len(self.namespace_names):
            raise ValueError("namespace_count must match the number of namespace names")
        return self


class NodeCondition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    # "True", "False" or "Unknown" as reported by the kubelet
    status: str = "Unknown"

    @property
    def is_ready(self) -> bool:
        return self.type == "Ready" and self.status == "True"


class PodSpecRequest(BaseModel):
    """Body of POST /api/pods and POST /api/pods/generate."""

    name: str
    namespace: str
    image: str


class PodImageUpdate(BaseModel):
    """Body of PUT /api/pods/{name}/{namespace}."""

    image: str
    container: str | None = Field(default=None, description="Target container; defaults to the pod name")


class PodGenerateRequest(PodSpecRequest):
    """Body of POST /api/pods/generate.

    ``container_template`` seeds the pod's single container; its ``name`` and
    ``image`` fall back to the request's.
    """

    container_template: dict[str, Any] = Field(default_factory=dict)
