"""
CLI for k3sspin - deploy Spin apps to Kubernetes.

Commands:
    scaffold    Generate SpinApp manifests
    deploy      Generate and apply SpinApp manifests
    get         Show a SpinApp
    list        List SpinApps
    logs        Show logs of a SpinApp
    validate    Validate a values file
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from . import kube
from .errors import ScaffoldError
from .generators import scaffold
from .schema import read_scaffold_yaml
from .types import DEFAULT_EXECUTOR, ScaffoldOptions
from .validation import validate_options

logger = logging.getLogger(__name__)

# Flag defaults, applied beneath the values file and explicit flags.
SCAFFOLD_DEFAULTS: Dict[str, Any] = {
    "replicas": 2,
    "max_replicas": 3,
    "executor": DEFAULT_EXECUTOR,
    "target_cpu_utilization_percentage": 60,
    "target_memory_utilization_percentage": 60,
}


SPIN_MANIFEST = "spin.toml"


def with_defaults(data: Dict[str, Any]) -> Dict[str, Any]:
    """Layer values-file data over the flag defaults."""
    values: Dict[str, Any] = dict(SCAFFOLD_DEFAULTS)
    values.update(data)
    return values


def app_name_from_dir(directory: Optional[str] = None) -> str:
    """
    Read the application name from spin.toml in a directory.

    Manifest version 2 keeps it under [application]; version 1 at the top.

    Returns:
        The name, or "" when there is no manifest or it names no app

    Raises:
        ValueError: If spin.toml is not valid TOML
    """
    manifest = Path(directory or ".") / SPIN_MANIFEST
    if not manifest.is_file():
        return ""

    data = tomllib.loads(manifest.read_text(encoding="utf-8"))
    application = data.get("application")
    if isinstance(application, dict) and application.get("name"):
        return str(application["name"])
    return str(data.get("name") or "")


def _resolve_app_name(args: argparse.Namespace) -> Optional[str]:
    """Name from args, else from ./spin.toml; None after reporting an error."""
    if args.name:
        return args.name

    try:
        name = app_name_from_dir()
    except (OSError, ValueError) as e:
        print(f"Error: could not read {SPIN_MANIFEST}: {e}", file=sys.stderr)
        return None

    if not name:
        print(
            f"Error: an app name is required (none given and no app in ./{SPIN_MANIFEST})",
            file=sys.stderr,
        )
        return None

    logger.debug(f"Using app name {name} from {SPIN_MANIFEST}")
    return name


def parse_variable(value: str) -> Tuple[str, str]:
    """Parse a KEY=VALUE variable flag."""
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(
            f"invalid variable '{value}'; expected KEY=VALUE"
        )
    return key, val


def add_scaffold_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the flags shared by scaffold and deploy.

    Defaults are None so that unset flags do not override a values file.
    """
    parser.add_argument(
        "-f", "--from",
        dest="image",
        help="Reference in the registry of the Spin application",
    )
    parser.add_argument(
        "-r", "--replicas",
        type=int,
        help=f"Minimum number of replicas (default: {SCAFFOLD_DEFAULTS['replicas']})",
    )
    parser.add_argument(
        "--executor",
        help=f"SpinAppExecutor to run the app with (default: {DEFAULT_EXECUTOR})",
    )
    parser.add_argument(
        "-c", "--runtime-config-file",
        dest="config_file",
        help="Path to a Spin runtime config file",
    )
    parser.add_argument(
        "--enable-azure-workload-identity",
        dest="azure_workload_identity",
        action="store_true",
        default=None,
        help="Annotate the app for Azure workload identity",
    )
    parser.add_argument(
        "-s", "--image-pull-secret",
        dest="image_pull_secrets",
        action="append",
        help="Secret for pulling the image (repeatable)",
    )
    parser.add_argument(
        "--service-account-name",
        help="Service account to run the app as",
    )
    parser.add_argument(
        "--autoscaler",
        help="Autoscaler to use: hpa or keda",
    )
    parser.add_argument(
        "--cpu-limit",
        help="CPU limit, required with an autoscaler (e.g. 100m)",
    )
    parser.add_argument(
        "--memory-limit",
        help="Memory limit, required with an autoscaler (e.g. 128Mi)",
    )
    parser.add_argument(
        "--max-replicas",
        type=int,
        help=f"Maximum number of replicas (default: {SCAFFOLD_DEFAULTS['max_replicas']})",
    )
    parser.add_argument(
        "--autoscaler-target-cpu-utilization",
        dest="target_cpu_utilization_percentage",
        type=int,
        help="Target CPU utilization percentage (default: 60)",
    )
    parser.add_argument(
        "--autoscaler-target-memory-utilization",
        dest="target_memory_utilization_percentage",
        type=int,
        help="Target memory utilization percentage (default: 60)",
    )
    parser.add_argument(
        "--variable",
        dest="variables",
        action="append",
        type=parse_variable,
        help="Application variable as KEY=VALUE (repeatable)",
    )
    parser.add_argument(
        "--component",
        dest="components",
        action="append",
        help="Component to run (repeatable, default: all)",
    )
    parser.add_argument(
        "--values",
        help="YAML file with scaffold options",
    )
    parser.add_argument(
        "-n", "--namespace",
        help="Namespace for the generated manifests",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="k3sspin",
        description="Deploy Spin apps to Kubernetes",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # scaffold command
    scaffold_parser = subparsers.add_parser(
        "scaffold",
        help="Generate SpinApp manifests",
    )
    add_scaffold_arguments(scaffold_parser)
    scaffold_parser.add_argument(
        "-o", "--out",
        help="Output file (default: stdout)",
    )

    # deploy command
    deploy_parser = subparsers.add_parser(
        "deploy",
        help="Generate and apply SpinApp manifests",
    )
    add_scaffold_arguments(deploy_parser)
    deploy_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the manifests without deploying",
    )

    # get command
    get_parser = subparsers.add_parser(
        "get",
        help="Show a SpinApp",
    )
    get_parser.add_argument(
        "name",
        nargs="?",
        help="SpinApp name (default: the app in ./spin.toml)",
    )
    get_parser.add_argument("-n", "--namespace", help="Namespace")

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List SpinApps",
    )
    list_parser.add_argument("-n", "--namespace", help="Namespace")

    # logs command
    logs_parser = subparsers.add_parser(
        "logs",
        help="Show logs of a SpinApp",
    )
    logs_parser.add_argument(
        "name",
        nargs="?",
        help="SpinApp name (default: the app in ./spin.toml)",
    )
    logs_parser.add_argument("-n", "--namespace", help="Namespace")
    logs_parser.add_argument(
        "--follow",
        action="store_true",
        help="Stream new log lines",
    )
    logs_parser.add_argument(
        "--tail",
        type=int,
        help="Number of recent lines to show",
    )

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a values file",
    )
    validate_parser.add_argument(
        "values",
        help="YAML file with scaffold options",
    )

    return parser


def build_scaffold_options(
    args: argparse.Namespace,
) -> Tuple[ScaffoldOptions, Optional[str]]:
    """
    Merge flag defaults, the values file and explicit flags.

    Returns:
        Scaffold options and the namespace (None when not set)

    Raises:
        FileNotFoundError: If the values file is not found
        ValueError: If the values file fails schema validation
    """
    values = with_defaults(read_scaffold_yaml(args.values) if args.values else {})

    flags = {
        "from": args.image,
        "replicas": args.replicas,
        "max_replicas": args.max_replicas,
        "executor": args.executor,
        "config_file": args.config_file,
        "azure_workload_identity": args.azure_workload_identity,
        "image_pull_secrets": args.image_pull_secrets,
        "service_account_name": args.service_account_name,
        "autoscaler": args.autoscaler,
        "cpu_limit": args.cpu_limit,
        "memory_limit": args.memory_limit,
        "target_cpu_utilization_percentage": args.target_cpu_utilization_percentage,
        "target_memory_utilization_percentage": args.target_memory_utilization_percentage,
        "components": args.components,
        "namespace": args.namespace,
    }
    values.update({k: v for k, v in flags.items() if v is not None})

    if args.variables:
        variables = dict(values.get("variables") or {})
        variables.update(args.variables)
        values["variables"] = variables

    return ScaffoldOptions.from_dict(values), values.get("namespace") or None


def _render(args: argparse.Namespace) -> Optional[str]:
    """Build options from args and render manifests; None on error."""
    try:
        options, namespace = build_scaffold_options(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

    if not options.image:
        print(
            "Error: an image reference is required (--from or 'from' in the values file)",
            file=sys.stderr,
        )
        return None

    try:
        return scaffold(options, namespace)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
    except OSError as e:
        print(f"Error: could not read runtime config: {e}", file=sys.stderr)
    return None


def cmd_scaffold(args: argparse.Namespace) -> int:
    """Handle scaffold command."""
    content = _render(args)
    if content is None:
        return 1

    if args.out:
        out_file = Path(args.out)
        if out_file.parent != Path("."):
            out_file.parent.mkdir(parents=True, exist_ok=True)
        out_file.write_text(content)
        print(f"Written: {out_file}", file=sys.stderr)
    else:
        print(content, end="")

    return 0


def cmd_deploy(args: argparse.Namespace) -> int:
    """Handle deploy command."""
    content = _render(args)
    if content is None:
        return 1

    if args.dry_run:
        print(content, end="")
        return 0

    logger.debug(f"Applying manifests to namespace {args.namespace or '(current context)'}")
    try:
        output = kube.apply_manifest(content, args.namespace)
    except ScaffoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(output, end="")
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    """Handle get command."""
    name = _resolve_app_name(args)
    if name is None:
        return 1

    try:
        kube.get_spinapp(name, args.namespace)
    except ScaffoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handle list command."""
    try:
        kube.list_spinapps(args.namespace)
    except ScaffoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_logs(args: argparse.Namespace) -> int:
    """Handle logs command."""
    name = _resolve_app_name(args)
    if name is None:
        return 1

    try:
        kube.stream_logs(
            name,
            args.namespace,
            follow=args.follow,
            tail=args.tail,
        )
    except ScaffoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    try:
        data = read_scaffold_yaml(args.values)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    options = ScaffoldOptions.from_dict(with_defaults(data))
    try:
        reference = validate_options(options)
    except ScaffoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"✓ {args.values} is valid")
    print(f"  SpinApp: {reference.name}")
    return 0


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.verbose)

    commands = {
        "scaffold": cmd_scaffold,
        "deploy": cmd_deploy,
        "get": cmd_get,
        "list": cmd_list,
        "logs": cmd_logs,
        "validate": cmd_validate,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
