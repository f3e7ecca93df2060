"""MCP server over server-sent events that runs commands against Kubernetes deployments through mirrord."""

__version__ = "0.1.0"
__all__ = ["errors", "utils", "executor", "tool", "server"]