"""
vSphere DRS VM Override MCP Server

Model Context Protocol interface exposing DRS VM override reconciliation
to an orchestration host.

Author: uldyssian-sh
License: MIT
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import __version__
from .client import VCenterClient
from .config import VCenterConfig
from .exceptions import ValidationError
from .resource import DrsVmOverrideResource
from .structure import DrsBehavior, DrsVmOverrideSpec

logger = structlog.get_logger(__name__)

SERVER_NAME = "vsphere-drs-override"

_SPEC_PROPERTIES = {
    "compute_cluster_id": {"type": "string", "description": "Managed object ID of the compute cluster"},
    "virtual_machine_id": {"type": "string", "description": "UUID of the virtual machine"},
    "drs_enabled": {"type": "boolean", "description": "Enable DRS for the virtual machine", "default": False},
    "drs_automation_level": {
        "type": "string",
        "enum": DrsBehavior.values(),
        "description": "DRS automation level for the virtual machine",
        "default": DrsBehavior.MANUAL.value,
    },
}

_RESOURCE_ID_PROPERTY = {
    "resource_id": {"type": "string", "description": "Override ID, <compute_cluster_id>:<virtual_machine_id>"},
}


class DrsOverrideMCPServer:
    """vSphere DRS VM Override MCP Server"""

    def __init__(self, config: VCenterConfig):
        self.config = config
        self.vcenter_client = VCenterClient(config)
        self.resource = DrsVmOverrideResource(self.vcenter_client)
        self.server = Server(SERVER_NAME)

        self._handlers = {
            "create_drs_vm_override": self._create_override,
            "read_drs_vm_override": self._read_override,
            "update_drs_vm_override": self._update_override,
            "delete_drs_vm_override": self._delete_override,
            "import_drs_vm_override": self._import_override,
            "plan_drs_vm_override": self._plan_override,
            "apply_drs_vm_override": self._apply_override,
            "list_drs_vm_overrides": self._list_overrides,
        }

        # Register MCP handlers
        self._register_handlers()

        logger.info("DRS override MCP server initialized")

    def list_tools(self) -> List[Tool]:
        """Describe the available MCP tools"""
        return [
            Tool(
                name="create_drs_vm_override",
                description="Create a DRS override for a virtual machine in a compute cluster",
                inputSchema={
                    "type": "object",
                    "properties": _SPEC_PROPERTIES,
                    "required": ["compute_cluster_id", "virtual_machine_id"]
                }
            ),
            Tool(
                name="read_drs_vm_override",
                description="Read the observed DRS override",
                inputSchema={
                    "type": "object",
                    "properties": _RESOURCE_ID_PROPERTY,
                    "required": ["resource_id"]
                }
            ),
            Tool(
                name="update_drs_vm_override",
                description="Update an existing DRS override",
                inputSchema={
                    "type": "object",
                    "properties": dict(_RESOURCE_ID_PROPERTY, **_SPEC_PROPERTIES),
                    "required": ["resource_id", "compute_cluster_id", "virtual_machine_id"]
                }
            ),
            Tool(
                name="delete_drs_vm_override",
                description="Remove a DRS override from its compute cluster",
                inputSchema={
                    "type": "object",
                    "properties": _RESOURCE_ID_PROPERTY,
                    "required": ["resource_id"]
                }
            ),
            Tool(
                name="import_drs_vm_override",
                description="Adopt an existing DRS override by inventory paths",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "compute_cluster_path": {"type": "string", "description": "Inventory path of the cluster"},
                        "virtual_machine_path": {"type": "string", "description": "Inventory path of the VM"}
                    },
                    "required": ["compute_cluster_path", "virtual_machine_path"]
                }
            ),
            Tool(
                name="plan_drs_vm_override",
                description="Show the drift between desired and observed DRS override",
                inputSchema={
                    "type": "object",
                    "properties": dict(_RESOURCE_ID_PROPERTY, **_SPEC_PROPERTIES),
                    "required": ["compute_cluster_id", "virtual_machine_id"]
                }
            ),
            Tool(
                name="apply_drs_vm_override",
                description="Converge the cluster onto the desired DRS override",
                inputSchema={
                    "type": "object",
                    "properties": dict(_RESOURCE_ID_PROPERTY, **_SPEC_PROPERTIES),
                    "required": ["compute_cluster_id", "virtual_machine_id"]
                }
            ),
            Tool(
                name="list_drs_vm_overrides",
                description="List all DRS VM overrides of a compute cluster",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "compute_cluster_id": _SPEC_PROPERTIES["compute_cluster_id"]
                    },
                    "required": ["compute_cluster_id"]
                }
            ),
        ]

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers"""

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
            return await self.call_tool(name, arguments or {})

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        """Dispatch a tool call and render the result as JSON text"""
        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise ValidationError(f"Unknown tool: {name}")

            # Ensure connection
            if not self.vcenter_client.is_connected():
                await self.vcenter_client.connect()

            result = await handler(arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

        except Exception as e:
            logger.error("Tool failed", tool=name, error=str(e))
            error_result = {
                "error": str(e),
                "tool": name,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
            return [TextContent(type="text", text=json.dumps(error_result, indent=2))]

    @staticmethod
    def _resource_id(args: Dict[str, Any]) -> str:
        resource_id = args.get("resource_id")
        if not resource_id:
            raise ValidationError("resource_id is required")
        return resource_id

    # Tool implementations
    async def _create_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        spec = DrsVmOverrideSpec.from_dict(args)
        state = await self.resource.create(spec)
        return {
            "success": True,
            "override": state.to_dict(),
            "message": f"DRS override {state.id!r} created successfully"
        }

    async def _read_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        resource_id = self._resource_id(args)
        state = await self.resource.read(resource_id)
        return {
            "success": True,
            "exists": state is not None,
            "override": state.to_dict() if state else None
        }

    async def _update_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        resource_id = self._resource_id(args)
        spec = DrsVmOverrideSpec.from_dict(args)
        state = await self.resource.update(resource_id, spec)
        return {
            "success": True,
            "override": state.to_dict(),
            "message": f"DRS override {state.id!r} updated successfully"
        }

    async def _delete_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        resource_id = self._resource_id(args)
        await self.resource.delete(resource_id)
        return {
            "success": True,
            "message": f"DRS override {resource_id!r} deleted successfully"
        }

    async def _import_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        import_id = json.dumps({
            "compute_cluster_path": args.get("compute_cluster_path", ""),
            "virtual_machine_path": args.get("virtual_machine_path", ""),
        })
        state = await self.resource.import_state(import_id)
        return {
            "success": True,
            "override": state.to_dict()
        }

    async def _plan_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        spec = DrsVmOverrideSpec.from_dict(args)
        plan = await self.resource.plan(spec, args.get("resource_id"))
        return {
            "success": True,
            "action": plan.action,
            "resource_id": plan.resource_id,
            "replaces": plan.replaces,
            "diff": {key: {"observed": old, "desired": new} for key, (old, new) in plan.diff.items()}
        }

    async def _apply_override(self, args: Dict[str, Any]) -> Dict[str, Any]:
        spec = DrsVmOverrideSpec.from_dict(args)
        changed, state = await self.resource.apply(spec, args.get("resource_id"))
        return {
            "success": True,
            "changed": changed,
            "override": state.to_dict() if state else None
        }

    async def _list_overrides(self, args: Dict[str, Any]) -> Dict[str, Any]:
        cluster_id = args.get("compute_cluster_id")
        if not cluster_id:
            raise ValidationError("compute_cluster_id is required")
        overrides = self.resource.list_overrides(cluster_id)
        return {
            "success": True,
            "overrides": overrides,
            "count": len(overrides)
        }

    async def start(self) -> None:
        """Start the MCP server"""
        try:
            await self.vcenter_client.connect()

            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=SERVER_NAME,
                        server_version=__version__,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={}
                        )
                    )
                )
        except Exception as e:
            logger.error("Server startup failed", error=str(e))
            raise
        finally:
            await self.vcenter_client.disconnect()

    async def stop(self) -> None:
        """Stop the MCP server"""
        await self.vcenter_client.disconnect()
        logger.info("DRS override MCP server stopped")
