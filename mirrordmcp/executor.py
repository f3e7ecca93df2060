"""Running commands under mirrord against a Kubernetes deployment."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import tempfile

from .errors import internal_error
from .utils import _format_seconds, _run_process, update_mirrord_config

logger = logging.getLogger(__name__)

MIRRORD_EXEC_TIMEOUT = 120.0


def _write_config(config_text: str) -> str:
    try:
        handle = tempfile.NamedTemporaryFile(
            mode="w", suffix=".json", delete=False, encoding="utf-8"
        )
    except OSError as exc:
        logger.error("Failed to create temp config file: %s", exc)
        raise internal_error("Failed to create temp config file") from exc
    with handle:
        try:
            handle.write(config_text)
        except OSError as exc:
            logger.error("Failed to write mirrord config to %s: %s", handle.name, exc)
            handle.close()
            os.unlink(handle.name)
            raise internal_error("Failed to write mirrord config") from exc
    return handle.name


async def execute_mirrord_run(
    cmd_str: str, deployment: str, mirrord_config: str, namespace: str
) -> str:
    """Run ``cmd_str`` through ``mirrord exec`` targeting the deployment's pod.

    Returns the command's standard output on success.
    """
    try:
        args = shlex.split(cmd_str)
    except ValueError as exc:
        logger.error("Failed to parse command line arguments: %s", exc)
        raise internal_error("Failed to parse command line arguments") from exc

    config_text = await update_mirrord_config(mirrord_config, deployment, namespace)

    config_path = _write_config(config_text)
    logger.debug("Wrote mirrord config to %s", config_path)
    try:
        argv = ["mirrord", "exec", "--config-file", config_path, *args]
        logger.info("Executing mirrord command: %s", argv)
        try:
            returncode, stdout, stderr = await _run_process(argv, MIRRORD_EXEC_TIMEOUT)
        except FileNotFoundError as exc:
            logger.error("Failed to run mirrord command: %s", exc)
            raise internal_error(
                "Failed to execute mirrord: 'mirrord' command not found in PATH."
            ) from exc
        except asyncio.TimeoutError as exc:
            limit = _format_seconds(MIRRORD_EXEC_TIMEOUT)
            logger.error("Mirrord execution timed out after %s", limit)
            raise internal_error(f"Mirrord execution timed out after {limit}") from exc
        except OSError as exc:
            logger.error("Failed to run mirrord command: %s", exc)
            raise internal_error(f"Failed to start mirrord process: {exc}") from exc
    finally:
        try:
            os.unlink(config_path)
        except OSError:
            logger.debug("Could not remove %s", config_path)

    stdout_text = stdout.decode("utf-8", errors="replace")
    stderr_text = stderr.decode("utf-8", errors="replace")

    if returncode == 0:
        logger.info("Mirrord execution succeeded")
        logger.debug(
            "stdout num bytes: %d, stderr num bytes: %d", len(stdout), len(stderr)
        )
        return stdout_text

    exit_code = "None" if returncode < 0 else str(returncode)
    logger.error("Mirrord execution failed (exit code %s): %s", exit_code, stderr_text)
    logger.debug("Mirrord config used: %s", config_text)
    raise internal_error(
        f"Mirrord execution failed (Exit Code: {exit_code}): {stderr_text}"
    )