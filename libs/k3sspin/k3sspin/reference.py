"""
Image reference parsing.

Validates OCI image references and derives the SpinApp name from them.
"""

import re

from .errors import InvalidReferenceError
from .types import ImageReference


_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN = rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*(?::[0-9]+)?"
_PATH_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*"
_NAME = rf"(?:{_DOMAIN}/)?{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"
_TAG = r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"

REFERENCE_PATTERN = re.compile(rf"{_NAME}(?::{_TAG})?(?:@{_DIGEST})?")


def validate_image_reference(reference: str) -> bool:
    """Check that reference is `[registry[:port]/]path[:tag][@digest]`."""
    return REFERENCE_PATTERN.fullmatch(reference) is not None


def get_name_from_image_reference(reference: str) -> str:
    """
    Derive the workload name from an image reference.

    The digest is dropped first, then the last path segment is taken and
    its tag removed: `ghcr.io/org/app:v1` and `ttl.sh/app@sha256:...`
    both give `app`.

    Raises:
        InvalidReferenceError: If no name is left
    """
    name = reference.split("@", 1)[0]
    name = name.split("/")[-1]
    name = name.split(":")[0]
    if not name:
        raise InvalidReferenceError(reference)
    return name


def resolve_image_reference(reference: str) -> ImageReference:
    """
    Validate an image reference and derive its workload name.

    Raises:
        InvalidReferenceError: If the reference does not parse
    """
    if not validate_image_reference(reference):
        raise InvalidReferenceError(reference)
    return ImageReference(raw=reference, name=get_name_from_image_reference(reference))
