"""
Values file loading and validation.

A values file is a YAML mapping with the same options as the scaffold
command's flags, e.g.:

    from: ghcr.io/foo/example-app:v0.1.0
    replicas: 2
    autoscaler: hpa
    variables:
      greeting: hello
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema
import yaml

from .types import ScaffoldOptions

logger = logging.getLogger(__name__)


def get_schema_path() -> Path:
    """Get path to the bundled JSON schema file."""
    return Path(__file__).parent / "schemas" / "scaffold-schema.json"


def load_schema() -> Dict[str, Any]:
    """Load the JSON schema for values files."""
    with open(get_schema_path()) as f:
        return json.load(f)


def validate_scaffold_yaml(data: Any) -> List[str]:
    """
    Validate values file data against the JSON schema.

    Returns list of validation errors (empty if valid).
    """
    validator = jsonschema.Draft7Validator(load_schema())
    errors = []
    for error in validator.iter_errors(data):
        path = ".".join(str(p) for p in error.absolute_path)
        errors.append(f"{path}: {error.message}" if path else error.message)
    return errors


def read_scaffold_yaml(
    path: str,
    validate: bool = True,
) -> Dict[str, Any]:
    """
    Read a values file into a plain mapping.

    A relative config_file is resolved against the values file's directory.

    Args:
        path: Path to the values file
        validate: Whether to validate against schema

    Returns:
        Parsed values

    Raises:
        FileNotFoundError: If the values file is not found
        ValueError: If validation fails
    """
    values_path = Path(path)
    if not values_path.exists():
        raise FileNotFoundError(f"values file not found at {path}")

    with open(values_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    if validate:
        errors = validate_scaffold_yaml(data)
        if errors:
            raise ValueError(f"{path} validation failed:\n" + "\n".join(errors))

    config_file = data.get("config_file")
    if config_file and not Path(config_file).is_absolute():
        data["config_file"] = str(values_path.parent / config_file)

    logger.debug(f"Loaded values from {path}: {sorted(data)}")
    return data


def load_scaffold_yaml(
    path: str,
    validate: bool = True,
) -> Tuple[ScaffoldOptions, str]:
    """
    Load a values file.

    Args:
        path: Path to the values file
        validate: Whether to validate against schema

    Returns:
        Parsed options and the namespace ("" when not set)

    Raises:
        FileNotFoundError: If the values file is not found
        ValueError: If validation fails
    """
    data = read_scaffold_yaml(path, validate=validate)
    return ScaffoldOptions.from_dict(data), data.get("namespace", "")
