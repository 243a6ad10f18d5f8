"""
Type definitions for k3sspin.

These dataclasses represent the options accepted by `k3sspin scaffold`
and the values file that can stand in for its flags.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_EXECUTOR = "containerd-shim-spin"


def variable_value(value: Any) -> str:
    """Render a variable value the way it is spelled in YAML."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Autoscaler(str, Enum):
    """Autoscaler backend for a SpinApp."""
    NONE = "none"
    HPA = "hpa"
    KEDA = "keda"


@dataclass(frozen=True)
class ImageReference:
    """An OCI image reference and the workload name derived from it."""
    raw: str
    name: str

    @classmethod
    def parse(cls, raw: str) -> "ImageReference":
        from .reference import resolve_image_reference
        return resolve_image_reference(raw)


@dataclass(frozen=True)
class ScaffoldOptions:
    """Options for scaffolding a SpinApp manifest.

    Numeric fields default to zero and strings to empty so that a record
    only carries what its caller set. The CLI supplies its own defaults.
    """
    image: str
    replicas: int = 0
    max_replicas: int = 0
    executor: str = DEFAULT_EXECUTOR
    config_file: Optional[str] = None
    azure_workload_identity: bool = False
    image_pull_secrets: List[str] = field(default_factory=list)
    service_account_name: str = ""
    autoscaler: str = ""
    cpu_limit: str = ""
    memory_limit: str = ""
    target_cpu_utilization_percentage: int = 0
    target_memory_utilization_percentage: int = 0
    variables: Dict[str, str] = field(default_factory=dict)
    components: List[str] = field(default_factory=list)

    @property
    def autoscaling_enabled(self) -> bool:
        """True when an autoscaler other than none is requested."""
        return self.autoscaler not in ("", Autoscaler.NONE.value)

    def get_autoscaler(self) -> Autoscaler:
        """Return the autoscaler as an enum member.

        Raises ValueError for unknown values; run validation first.
        """
        if not self.autoscaler:
            return Autoscaler.NONE
        return Autoscaler(self.autoscaler)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScaffoldOptions":
        image = data.get("from", data.get("image", ""))
        variables = data.get("variables") or {}
        return cls(
            image=image or "",
            replicas=int(data.get("replicas", 0)),
            max_replicas=int(data.get("max_replicas", 0)),
            executor=data.get("executor") or DEFAULT_EXECUTOR,
            config_file=data.get("config_file"),
            azure_workload_identity=data.get("azure_workload_identity", False),
            image_pull_secrets=list(data.get("image_pull_secrets") or []),
            service_account_name=data.get("service_account_name") or "",
            autoscaler=data.get("autoscaler") or "",
            cpu_limit=data.get("cpu_limit") or "",
            memory_limit=data.get("memory_limit") or "",
            target_cpu_utilization_percentage=int(data.get(
                "target_cpu_utilization_percentage", 0
            )),
            target_memory_utilization_percentage=int(data.get(
                "target_memory_utilization_percentage", 0
            )),
            variables={str(k): variable_value(v) for k, v in variables.items()},
            components=list(data.get("components") or []),
        )
