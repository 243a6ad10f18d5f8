"""
Kubernetes manifest generators for Spin apps.

Generates SpinApp, runtime-config Secret, HorizontalPodAutoscaler and
KEDA ScaledObject manifests, and renders them as multi-document YAML.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .types import Autoscaler, ScaffoldOptions
from .validation import validate_options

logger = logging.getLogger(__name__)

SPINAPP_API_VERSION = "core.spinoperator.dev/v1alpha1"
AZURE_WORKLOAD_IDENTITY_ANNOTATION = "azure.workload.identity/use"
RUNTIME_CONFIG_KEY = "runtime-config.toml"


class _LiteralStr(str):
    """String rendered as a YAML literal block."""


class _ManifestDumper(yaml.SafeDumper):
    """SafeDumper that keeps file contents in literal block style."""


def _represent_literal(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style="|")


_ManifestDumper.add_representer(_LiteralStr, _represent_literal)


def _metadata(name: str, namespace: Optional[str]) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return metadata


def _runtime_config_secret_name(name: str) -> str:
    return f"{name}-runtime-config"


def _autoscaler_name(name: str) -> str:
    return f"{name}-autoscaler"


def _build_resources(options: ScaffoldOptions) -> Optional[Dict[str, Any]]:
    """Build resource limits; None when neither limit is set."""
    limits: Dict[str, str] = {}
    if options.cpu_limit:
        limits["cpu"] = options.cpu_limit
    if options.memory_limit:
        limits["memory"] = options.memory_limit
    if not limits:
        return None
    return {"limits": limits}


def _build_variables(variables: Dict[str, str]) -> List[Dict[str, str]]:
    """Build the variables list sorted by name."""
    return [
        {"name": key, "value": variables[key]}
        for key in sorted(variables)
    ]


def generate_spinapp(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str] = None,
    runtime_config: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate SpinApp manifest.

    Args:
        options: Validated scaffold options
        name: Workload name derived from the image reference
        namespace: Target namespace (omitted when empty)
        runtime_config: Runtime config contents, if a file was supplied

    Returns:
        SpinApp manifest dict
    """
    metadata = _metadata(name, namespace)

    # Workload identity
    if options.azure_workload_identity:
        metadata["annotations"] = {AZURE_WORKLOAD_IDENTITY_ANNOTATION: "true"}

    spec: Dict[str, Any] = {
        "image": options.image,
        "executor": options.executor,
        "replicas": options.replicas,
    }

    if options.autoscaling_enabled:
        spec["enableAutoscaling"] = True

    resources = _build_resources(options)
    if resources:
        spec["resources"] = resources

    # Service account
    if options.service_account_name:
        spec["serviceAccountName"] = options.service_account_name

    if options.image_pull_secrets:
        spec["imagePullSecrets"] = [
            {"name": secret} for secret in options.image_pull_secrets
        ]

    if options.variables:
        spec["variables"] = _build_variables(options.variables)

    if options.components:
        spec["components"] = list(options.components)

    if runtime_config is not None:
        spec["runtimeConfig"] = {
            "loadFromSecret": _runtime_config_secret_name(name),
        }

    return {
        "apiVersion": SPINAPP_API_VERSION,
        "kind": "SpinApp",
        "metadata": metadata,
        "spec": spec,
    }


def generate_runtime_config_secret(
    name: str,
    runtime_config: Optional[str],
    namespace: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Generate Secret holding the Spin runtime config.

    The contents are stored under stringData unchanged.

    Args:
        name: Workload name
        runtime_config: Runtime config file contents
        namespace: Target namespace

    Returns:
        Secret manifest dict or None if no runtime config was supplied
    """
    if runtime_config is None:
        return None

    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": _metadata(_runtime_config_secret_name(name), namespace),
        "type": "Opaque",
        "stringData": {
            RUNTIME_CONFIG_KEY: _LiteralStr(runtime_config),
        },
    }


def generate_hpa(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate Kubernetes HorizontalPodAutoscaler manifest.

    The Spin operator creates a Deployment named after the SpinApp, which
    is what the HPA scales.

    Args:
        options: Validated scaffold options
        name: Workload name
        namespace: Target namespace

    Returns:
        HPA manifest dict
    """
    metrics = [
        {
            "type": "Resource",
            "resource": {
                "name": resource,
                "target": {
                    "type": "Utilization",
                    "averageUtilization": target,
                },
            },
        }
        for resource, target in (
            ("cpu", options.target_cpu_utilization_percentage),
            ("memory", options.target_memory_utilization_percentage),
        )
    ]

    return {
        "apiVersion": "autoscaling/v2",
        "kind": "HorizontalPodAutoscaler",
        "metadata": _metadata(_autoscaler_name(name), namespace),
        "spec": {
            "scaleTargetRef": {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "name": name,
            },
            "minReplicas": options.replicas,
            "maxReplicas": options.max_replicas,
            "metrics": metrics,
        },
    }


def generate_keda_scaledobject(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate KEDA ScaledObject for CPU and memory utilization scaling.

    Args:
        options: Validated scaffold options
        name: Workload name
        namespace: Target namespace

    Returns:
        ScaledObject manifest dict
    """
    triggers = [
        {
            "type": resource,
            "metricType": "Utilization",
            "metadata": {
                "value": str(target),
            },
        }
        for resource, target in (
            ("cpu", options.target_cpu_utilization_percentage),
            ("memory", options.target_memory_utilization_percentage),
        )
    ]

    return {
        "apiVersion": "keda.sh/v1alpha1",
        "kind": "ScaledObject",
        "metadata": _metadata(_autoscaler_name(name), namespace),
        "spec": {
            "scaleTargetRef": {
                "name": name,
                "kind": "Deployment",
            },
            "minReplicaCount": options.replicas,
            "maxReplicaCount": options.max_replicas,
            "triggers": triggers,
        },
    }


def generate_autoscaler(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Generate the autoscaling manifest for the configured backend.

    Returns:
        HPA or ScaledObject manifest dict, or None without autoscaling
    """
    autoscaler = options.get_autoscaler()
    if autoscaler == Autoscaler.HPA:
        return generate_hpa(options, name, namespace)
    elif autoscaler == Autoscaler.KEDA:
        return generate_keda_scaledobject(options, name, namespace)
    return None


def _workload_section(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str],
    runtime_config: Optional[str],
) -> Optional[Dict[str, Any]]:
    return generate_spinapp(options, name, namespace, runtime_config)


def _runtime_config_section(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str],
    runtime_config: Optional[str],
) -> Optional[Dict[str, Any]]:
    return generate_runtime_config_secret(name, runtime_config, namespace)


def _autoscaler_section(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str],
    runtime_config: Optional[str],
) -> Optional[Dict[str, Any]]:
    return generate_autoscaler(options, name, namespace)


SectionBuilder = Callable[
    [ScaffoldOptions, str, Optional[str], Optional[str]],
    Optional[Dict[str, Any]],
]

# Output order of the manifest documents.
SECTION_BUILDERS: List[SectionBuilder] = [
    _workload_section,
    _runtime_config_section,
    _autoscaler_section,
]


def generate_all_manifests(
    options: ScaffoldOptions,
    name: str,
    namespace: Optional[str] = None,
    runtime_config: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Generate all Kubernetes manifests for a Spin app.

    Args:
        options: Validated scaffold options
        name: Workload name
        namespace: Target namespace
        runtime_config: Runtime config contents, if a file was supplied

    Returns:
        List of manifest dicts in output order
    """
    manifests = []
    for build in SECTION_BUILDERS:
        manifest = build(options, name, namespace, runtime_config)
        if manifest:
            manifests.append(manifest)
    return manifests


def render_manifests(manifests: List[Dict[str, Any]]) -> str:
    """Render manifests as a multi-document YAML string."""
    docs = []
    for m in manifests:
        docs.append(yaml.dump(
            m,
            Dumper=_ManifestDumper,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        ))
    return "---\n" + "---\n".join(docs)


def read_runtime_config(path: str) -> str:
    """
    Read a runtime config file without newline translation.

    Raises:
        OSError: If the file cannot be read
    """
    return Path(path).read_bytes().decode("utf-8")


def scaffold(
    options: ScaffoldOptions,
    namespace: Optional[str] = None,
) -> str:
    """
    Validate options and render the SpinApp manifests.

    Args:
        options: Scaffold options
        namespace: Target namespace (omitted from output when empty)

    Returns:
        Multi-document YAML

    Raises:
        InvalidReferenceError: If the image reference does not parse
        ValidationError: If the options are inconsistent
        OSError: If the runtime config file cannot be read
    """
    reference = validate_options(options)

    runtime_config = None
    if options.config_file:
        runtime_config = read_runtime_config(options.config_file)
        logger.debug(f"Loaded runtime config from {options.config_file}")

    manifests = generate_all_manifests(
        options,
        reference.name,
        namespace,
        runtime_config,
    )
    logger.debug(f"Generated {len(manifests)} manifests for {reference.name}")
    return render_manifests(manifests)
