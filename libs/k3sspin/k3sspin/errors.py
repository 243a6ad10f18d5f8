"""
Error types raised by k3sspin.

File access failures are not wrapped; they surface as the builtin OSError.
"""


class ScaffoldError(Exception):
    """Base class for k3sspin errors."""


class InvalidReferenceError(ScaffoldError, ValueError):
    """Image reference is malformed or yields no workload name."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"invalid image reference provided: '{reference}'")


class ValidationError(ScaffoldError, ValueError):
    """Scaffold options violate a consistency constraint."""


class KubectlError(ScaffoldError):
    """kubectl exited with a non-zero status."""

    def __init__(self, message: str, returncode: int = 1, output: str = ""):
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class KubectlNotFoundError(KubectlError):
    """kubectl binary is not available."""
