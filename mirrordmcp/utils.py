"""Kubernetes lookups and mirrord configuration handling."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence

from .errors import McpError, internal_error

logger = logging.getLogger(__name__)

KUBECTL_TIMEOUT = 30.0


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


async def _run_process(argv: Sequence[str], timeout: float) -> tuple[int, bytes, bytes]:
    """Run a program with captured output; kill it if it outlives the timeout."""
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise
    return process.returncode, stdout, stderr


def _pod_name_from_output(
    returncode: int, stdout: bytes, stderr: bytes, deployment: str
) -> str:
    if returncode != 0:
        error_text = stderr.decode("utf-8", errors="replace")
        logger.error("kubectl failed: %s", error_text)
        raise internal_error(f"kubectl command failed: {error_text}")
    try:
        pod_name = stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.error("Invalid pod name: %s", exc)
        raise internal_error("Failed to parse pod name from kubectl output") from exc
    if not pod_name:
        logger.error("No pod found for deployment")
        raise internal_error(f"No pod found for deployment: {deployment}")
    logger.info("Found pod: %s", pod_name)
    return pod_name


async def get_pod_name(deployment: str, namespace: str) -> str:
    """Return the name of the first pod labelled ``app=<deployment>``."""
    argv = [
        "kubectl",
        "get",
        "pods",
        "-n",
        namespace,
        "-l",
        f"app={deployment}",
        "-o",
        "jsonpath={.items[0].metadata.name}",
    ]
    try:
        returncode, stdout, stderr = await _run_process(argv, KUBECTL_TIMEOUT)
    except FileNotFoundError as exc:
        logger.error("Failed to run kubectl command: %s", exc)
        raise internal_error(
            "Failed to execute kubectl: 'kubectl' command not found in PATH."
        ) from exc
    except asyncio.TimeoutError as exc:
        limit = _format_seconds(KUBECTL_TIMEOUT)
        logger.error("kubectl command timed out after %s", limit)
        raise internal_error(f"kubectl command timed out after {limit}") from exc
    except OSError as exc:
        logger.error("Failed to run kubectl command: %s", exc)
        raise internal_error(f"Failed to start kubectl process: {exc}") from exc
    return _pod_name_from_output(returncode, stdout, stderr, deployment)


async def update_mirrord_config(
    mirrord_config: str, deployment: str, namespace: str
) -> str:
    """Point a mirrord JSON config at the deployment's pod and return it serialised."""
    try:
        pod_name = await get_pod_name(deployment, namespace)
    except McpError as exc:
        logger.error("Failed to get pod name: %s", exc)
        raise

    try:
        config = json.loads(mirrord_config)
    except ValueError as exc:
        logger.error("Failed to parse mirrord config: %s", exc)
        raise internal_error("Failed to parse mirrord config") from exc

    if not isinstance(config, dict):
        logger.error("Mirrord config is not a JSON object")
        raise internal_error("Mirrord config must be a JSON object")

    config["target"] = {"namespace": namespace, "path": f"pod/{pod_name}"}

    try:
        return json.dumps(config, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except ValueError as exc:
        logger.error("Failed to serialize updated mirrord config: %s", exc)
        raise internal_error("Failed to serialize mirrord config") from exc