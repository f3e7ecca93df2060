"""The mirrord MCP tool service and its JSON-RPC message handling."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, fields
from typing import Any

from .errors import McpError, internal_error
from .executor import execute_mirrord_run

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "mirrordmcp"
SERVER_VERSION = "0.1.0"
INSTRUCTIONS = "Mirrord execution service"
DEFAULT_NAMESPACE = "default"

TOOL_NAME = "run"
TOOL_DESCRIPTION = (
    "Run a command-line statement against a Kubernetes service using mirrord "
    "to mirror traffic. Use absolute paths for binaries and all necessary flags."
)

_FIELD_DESCRIPTIONS = {
    "cmd_str": (
        "Complete command-line statement to run, using absolute paths for "
        "binaries, and all necessary flags."
    ),
    "deployment": "Kubernetes deployment name.",
    "mirrord_config": (
        "Mirrord config in JSON format.e.g., '{\"feature\": {\"network\": "
        "{\"incoming\": {\"mode\": \"mirror\", \"ports\": [ 8888 ] } } }'."
    ),
}

Runner = Callable[[str, str, str, str], Awaitable[str]]


@dataclass(frozen=True)
class Request:
    """Arguments of the ``run`` tool."""

    cmd_str: str
    deployment: str
    mirrord_config: str

    @classmethod
    def from_arguments(cls, arguments: Any) -> Request:
        """Build a request from tool-call arguments, checking every field."""
        if not isinstance(arguments, dict):
            raise McpError(INVALID_PARAMS, "Tool arguments must be a JSON object")
        values: dict[str, str] = {}
        for field in fields(cls):
            if field.name not in arguments:
                raise McpError(INVALID_PARAMS, f"missing field `{field.name}`")
            value = arguments[field.name]
            if not isinstance(value, str):
                raise McpError(
                    INVALID_PARAMS, f"field `{field.name}` must be a string"
                )
            values[field.name] = value
        return cls(**values)

    @classmethod
    def json_schema(cls) -> dict[str, Any]:
        """Return the JSON schema describing the tool input."""
        return {
            "title": cls.__name__,
            "type": "object",
            "properties": {
                field.name: {
                    "type": "string",
                    "description": _FIELD_DESCRIPTIONS[field.name],
                }
                for field in fields(cls)
            },
            "required": [field.name for field in fields(cls)],
        }


def _response(message_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


def _error_response(message_id: Any, error: McpError) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "error": error.to_dict()}


class MirrordService:
    """MCP server exposing a single tool that runs commands under mirrord."""

    def __init__(self, runner: Runner | None = None) -> None:
        self._runner: Runner = runner if runner is not None else execute_mirrord_run

    async def run(self, request: Request) -> dict[str, Any]:
        """Run the request's command and return a successful tool result."""
        output = await self._runner(
            request.cmd_str,
            request.deployment,
            request.mirrord_config,
            DEFAULT_NAMESPACE,
        )
        return {"content": [{"type": "text", "text": output}], "isError": False}

    def get_info(self) -> dict[str, Any]:
        """Return the server information sent in reply to ``initialize``."""
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            "instructions": INSTRUCTIONS,
        }

    def list_tools(self) -> list[dict[str, Any]]:
        """Describe the tools this service offers."""
        return [
            {
                "name": TOOL_NAME,
                "description": TOOL_DESCRIPTION,
                "inputSchema": Request.json_schema(),
            }
        ]

    async def call_tool(self, name: str, arguments: Any) -> dict[str, Any]:
        """Call the named tool with the given arguments."""
        if name != TOOL_NAME:
            raise McpError(INVALID_PARAMS, f"tool not found: {name}")
        return await self.run(Request.from_arguments(arguments))

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Answer one JSON-RPC message; notifications and responses yield None."""
        if not isinstance(message, dict):
            return _error_response(
                None, McpError(INVALID_REQUEST, "Invalid JSON-RPC message")
            )
        message_id = message.get("id")
        method = message.get("method")
        if method is None and ("result" in message or "error" in message):
            return None
        if not isinstance(method, str) or message.get("jsonrpc") != "2.0":
            return _error_response(
                message_id, McpError(INVALID_REQUEST, "Invalid JSON-RPC request")
            )
        if "id" not in message:
            logger.debug("Received notification %s", method)
            return None
        try:
            result = await self._dispatch(method, message.get("params"))
        except McpError as exc:
            return _error_response(message_id, exc)
        except Exception as exc:  # noqa: BLE001 - reported to the client
            logger.exception("Unexpected failure handling %s", method)
            return _error_response(message_id, internal_error(str(exc)))
        return _response(message_id, result)

    async def _dispatch(self, method: str, params: Any) -> Any:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise McpError(INVALID_PARAMS, "params must be a JSON object")
        if method == "initialize":
            return self.get_info()
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": self.list_tools()}
        if method == "tools/call":
            name = params.get("name")
            if not isinstance(name, str):
                raise McpError(INVALID_PARAMS, "tool name must be a string")
            return await self.call_tool(name, params.get("arguments"))
        raise McpError(METHOD_NOT_FOUND, f"Method not found: {method}")