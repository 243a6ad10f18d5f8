"""
K3s Spin - CLI tool for deploying Spin apps to Kubernetes

Generates SpinApp manifests and applies them with kubectl.
"""

__version__ = "0.1.0"

from .types import (
    Autoscaler,
    ImageReference,
    ScaffoldOptions,
)

from .errors import (
    ScaffoldError,
    InvalidReferenceError,
    ValidationError,
    KubectlError,
    KubectlNotFoundError,
)

from .reference import (
    validate_image_reference,
    get_name_from_image_reference,
    resolve_image_reference,
)

from .validation import validate_options

from .schema import (
    load_scaffold_yaml,
    validate_scaffold_yaml,
)

from .generators import (
    generate_spinapp,
    generate_runtime_config_secret,
    generate_hpa,
    generate_keda_scaledobject,
    generate_autoscaler,
    generate_all_manifests,
    render_manifests,
    scaffold,
)

__all__ = [
    # Types
    "Autoscaler",
    "ImageReference",
    "ScaffoldOptions",
    # Errors
    "ScaffoldError",
    "InvalidReferenceError",
    "ValidationError",
    "KubectlError",
    "KubectlNotFoundError",
    # Reference
    "validate_image_reference",
    "get_name_from_image_reference",
    "resolve_image_reference",
    # Validation
    "validate_options",
    # Schema
    "load_scaffold_yaml",
    "validate_scaffold_yaml",
    # Generators
    "generate_spinapp",
    "generate_runtime_config_secret",
    "generate_hpa",
    "generate_keda_scaledobject",
    "generate_autoscaler",
    "generate_all_manifests",
    "render_manifests",
    "scaffold",
]
