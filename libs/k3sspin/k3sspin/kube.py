"""
kubectl wrapper for the cluster-facing commands.

deploy, get, list and logs delegate to kubectl so that kubeconfig,
contexts and authentication behave exactly as they do for kubectl.
"""

import logging
import shutil
import subprocess
from typing import List, Optional

from .errors import KubectlError, KubectlNotFoundError

logger = logging.getLogger(__name__)

SPINAPP_RESOURCE = "spinapps.core.spinoperator.dev"


def find_kubectl(kubectl: str = "kubectl") -> str:
    """
    Locate the kubectl binary.

    Raises:
        KubectlNotFoundError: If kubectl is not on PATH
    """
    path = shutil.which(kubectl)
    if not path:
        raise KubectlNotFoundError(
            f"{kubectl} not found; install kubectl and configure KUBECONFIG"
        )
    return path


def _namespace_args(namespace: Optional[str]) -> List[str]:
    return ["--namespace", namespace] if namespace else []


def run_kubectl(
    args: List[str],
    input_data: Optional[str] = None,
    capture: bool = True,
    kubectl: str = "kubectl",
) -> str:
    """
    Run kubectl and return its output.

    Args:
        args: Arguments after the kubectl binary
        input_data: Text written to stdin
        capture: Capture output; when False it goes straight to the terminal
        kubectl: kubectl binary name or path

    Returns:
        Captured stdout ("" when not capturing)

    Raises:
        KubectlNotFoundError: If kubectl is not on PATH
        KubectlError: If kubectl exits non-zero
    """
    cmd = [find_kubectl(kubectl)] + args
    logger.debug(f"Running: {' '.join(cmd)}")

    proc = subprocess.run(
        cmd,
        input=input_data,
        capture_output=capture,
        text=True,
        check=False,
    )

    if proc.returncode != 0:
        output = (proc.stderr or proc.stdout or "").strip() if capture else ""
        message = output or f"kubectl {' '.join(args)} exited with status {proc.returncode}"
        raise KubectlError(message, returncode=proc.returncode, output=output)

    return proc.stdout if capture else ""


def apply_manifest(manifest: str, namespace: Optional[str] = None) -> str:
    """Apply a multi-document manifest with `kubectl apply -f -`."""
    return run_kubectl(
        ["apply", "-f", "-"] + _namespace_args(namespace),
        input_data=manifest,
    )


def get_spinapp(name: str, namespace: Optional[str] = None) -> None:
    """Print a single SpinApp."""
    run_kubectl(
        ["get", SPINAPP_RESOURCE, name] + _namespace_args(namespace),
        capture=False,
    )


def list_spinapps(namespace: Optional[str] = None) -> None:
    """Print the SpinApps in a namespace."""
    run_kubectl(
        ["get", SPINAPP_RESOURCE] + _namespace_args(namespace),
        capture=False,
    )


def stream_logs(
    name: str,
    namespace: Optional[str] = None,
    follow: bool = False,
    tail: Optional[int] = None,
) -> None:
    """Print logs of the Deployment backing a SpinApp."""
    args = ["logs", f"deployment/{name}"] + _namespace_args(namespace)
    if follow:
        args.append("--follow")
    if tail is not None:
        args.append(f"--tail={tail}")
    run_kubectl(args, capture=False)
