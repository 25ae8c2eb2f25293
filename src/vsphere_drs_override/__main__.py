"""
vSphere DRS VM Override - Main Entry Point

Command-line interface for reconciling DRS VM overrides and for running
the MCP server.

Author: uldyssian-sh
License: MIT
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import yaml

from . import __version__
from .client import VCenterClient
from .config import AcceptanceEnvironment, load_config
from .exceptions import DrsOverrideError, ValidationError
from .logging_config import setup_logging
from .resource import IMPORT_CLUSTER_PATH_KEY, IMPORT_VM_PATH_KEY, DrsVmOverrideResource
from .structure import DrsBehavior, DrsVmOverrideSpec
from .templates import render_override_config


def _load_spec(args: argparse.Namespace) -> DrsVmOverrideSpec:
    """Build an override spec from a YAML file or command-line flags"""
    data: Dict[str, Any] = {}
    if args.spec:
        with open(args.spec, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Override file {args.spec} must contain a mapping")

    if args.cluster_id:
        data["compute_cluster_id"] = args.cluster_id
    if args.vm_id:
        data["virtual_machine_id"] = args.vm_id
    if args.drs_enabled is not None:
        data["drs_enabled"] = args.drs_enabled
    if args.automation_level:
        data["drs_automation_level"] = args.automation_level
    return DrsVmOverrideSpec.from_dict(data)


async def run_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Connect to vCenter, run one resource command, disconnect"""
    config = load_config(args.config)
    client = VCenterClient(config)
    resource = DrsVmOverrideResource(client)

    await client.connect()
    try:
        if args.command == "apply":
            spec = _load_spec(args)
            changed, state = await resource.apply(spec, args.resource_id)
            return {"changed": changed, "override": state.to_dict() if state else None}

        if args.command == "show":
            state = await resource.read(args.resource_id)
            return {"exists": state is not None, "override": state.to_dict() if state else None}

        if args.command == "destroy":
            await resource.delete(args.resource_id)
            return {"deleted": args.resource_id}

        if args.command == "import":
            import_id = json.dumps({
                IMPORT_CLUSTER_PATH_KEY: args.cluster_path,
                IMPORT_VM_PATH_KEY: args.vm_path,
            })
            state = await resource.import_state(import_id)
            return {"override": state.to_dict()}

        if args.command == "list":
            overrides = resource.list_overrides(args.cluster_id)
            return {"overrides": overrides, "count": len(overrides)}

        raise ValidationError(f"Unknown command: {args.command}")
    finally:
        await client.disconnect()


async def run_server(config_file: Optional[str] = None) -> None:
    """Run the MCP server"""
    from .server import DrsOverrideMCPServer

    server = DrsOverrideMCPServer(load_config(config_file))
    await server.start()


def _bool_arg(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser"""
    parser = argparse.ArgumentParser(
        prog="vsphere-drs-override",
        description="vSphere DRS VM Override",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Converge an override described in YAML
  python -m vsphere_drs_override apply --spec override.yaml

  # Import an existing override
  python -m vsphere_drs_override import --cluster-path /dc1/host/cluster1 --vm-path /dc1/vm/web01

  # Render the acceptance configuration from VSPHERE_* variables
  python -m vsphere_drs_override render --drs-enabled true --automation-level fullyAutomated

  # Run the MCP server
  python -m vsphere_drs_override serve --config config.yaml
        """
    )

    parser.add_argument("--config", "-c", help="Configuration file path", default=None)
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level"
    )
    parser.add_argument("--log-file", help="Rotating log file path", default=None)
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"vSphere DRS VM Override {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the MCP server")

    apply_parser = subparsers.add_parser("apply", help="Converge an override onto the cluster")
    apply_parser.add_argument("--spec", help="YAML file describing the override")
    apply_parser.add_argument("--resource-id", help="ID of the override currently managed")
    apply_parser.add_argument("--cluster-id", help="Managed object ID of the compute cluster")
    apply_parser.add_argument("--vm-id", help="UUID of the virtual machine")
    apply_parser.add_argument("--drs-enabled", type=_bool_arg, default=None, help="Enable DRS for the VM")
    apply_parser.add_argument("--automation-level", choices=DrsBehavior.values(), help="DRS automation level")

    show_parser = subparsers.add_parser("show", help="Show the observed override")
    show_parser.add_argument("resource_id", help="Override ID, <cluster id>:<vm uuid>")

    destroy_parser = subparsers.add_parser("destroy", help="Remove an override")
    destroy_parser.add_argument("resource_id", help="Override ID, <cluster id>:<vm uuid>")

    import_parser = subparsers.add_parser("import", help="Adopt an existing override")
    import_parser.add_argument("--cluster-path", required=True, help="Inventory path of the cluster")
    import_parser.add_argument("--vm-path", required=True, help="Inventory path of the virtual machine")

    list_parser = subparsers.add_parser("list", help="List the overrides of a cluster")
    list_parser.add_argument("cluster_id", help="Managed object ID of the compute cluster")

    render_parser = subparsers.add_parser("render", help="Render the acceptance configuration")
    render_parser.add_argument("--drs-enabled", type=_bool_arg, default=False, help="Enable DRS for the VM")
    render_parser.add_argument("--automation-level", choices=DrsBehavior.values(), help="DRS automation level")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    try:
        if args.command == "render":
            env = AcceptanceEnvironment.from_env()
            print(render_override_config(env, args.drs_enabled, args.automation_level))
            return

        if args.command == "serve":
            asyncio.run(run_server(args.config))
            return

        result = asyncio.run(run_command(args))
        print(json.dumps(result, indent=2))

    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
    except DrsOverrideError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
