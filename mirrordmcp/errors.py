"""Error type reported back to MCP clients."""

from __future__ import annotations

from typing import Any

INTERNAL_ERROR = -32603


class McpError(Exception):
    """A JSON-RPC style error carrying a code, a message and optional data."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"McpError(code={self.code!r}, message={self.message!r}, data={self.data!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a JSON-RPC error object."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def internal_error(message: str, data: Any = None) -> McpError:
    """Build an internal error with the given message."""
    return McpError(INTERNAL_ERROR, message, data)