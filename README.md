# mirrordmcp

mirrordmcp is a Model Context Protocol (MCP) server. It lets an MCP client run
a command on your machine while mirrord mirrors the traffic of a pod in a
Kubernetes cluster to it.

## Requirements

- Python 3.10 or later
- `kubectl` on your `PATH`, configured for the cluster you want to use
- `mirrord` on your `PATH`

## Installation

```
pip install .
```

## Running the server

```
mirrordmcp
```

Options:

- `--host` – address to bind (default `127.0.0.1`)
- `--port` – port to bind (default `3000`)

The log level is read from the `MIRRORD_MCP_LOG` environment variable
(for example `INFO` or `WARNING`); it defaults to `DEBUG`.

The server has two endpoints:

- `GET /sse` opens an event stream, one MCP session per connection. Its first
  event, `endpoint`, carries the path to post messages to:
  `/message?sessionId=<id>`. Replies arrive as `message` events holding
  JSON-RPC responses.
- `POST /message?sessionId=<id>` takes one JSON-RPC message, or a list of
  them, for that session. It answers `202` once the messages are accepted,
  `400` when `sessionId` is missing or the body is not a JSON object or list,
  and `404` when the session is unknown.

The server answers the JSON-RPC methods `initialize`, `ping`, `tools/list`
and `tools/call`. Notifications and responses sent by the client are accepted
and produce no reply. Press Ctrl-C to stop the server.

## The `run` tool

The server provides a single tool, `run`. All three arguments are required
strings:

| argument         | meaning                                                                 |
|------------------|-------------------------------------------------------------------------|
| `cmd_str`        | The full command line to run, split like a shell would split it. Give absolute paths for binaries and every flag the command needs. |
| `deployment`     | The name of the Kubernetes deployment.                                  |
| `mirrord_config` | A mirrord configuration as a JSON object in a string, for example `{"feature": {"network": {"incoming": {"mode": "mirror", "ports": [8888]}}}}` |

A call to `run` does the following:

1. It finds the first pod labelled `app=<deployment>` in the `default`
   namespace with `kubectl`. It gives up after 30 seconds.
2. It sets the `target` of the configuration to
   `{"namespace": "default", "path": "pod/<pod>"}` and writes the result to a
   temporary JSON file, which is removed once mirrord has finished.
3. It runs `mirrord exec --config-file <file> <command...>`. It gives up
   after 120 seconds and kills the process.
4. If the command exits with status 0, it returns the command's standard
   output as a text content item. Otherwise it reports
   `Mirrord execution failed (Exit Code: <code>): <stderr>` as an error; the
   code is `None` when the process was ended by a signal.

Every failure along the way (command line that cannot be split, `kubectl` or
`mirrord` missing, no pod found, configuration that is not a JSON object,
timeouts) is returned to the client as a JSON-RPC error.

## Using it from Python

```python
import asyncio
from mirrordmcp.tool import MirrordService, Request

async def demo():
    service = MirrordService()
    request = Request.from_arguments({
        "cmd_str": "/usr/bin/curl -s http://localhost:8888/",
        "deployment": "my-app",
        "mirrord_config": "{}",
    })
    print(await service.run(request))

asyncio.run(demo())
```

The modules:

- `mirrordmcp.errors` – `McpError`, which carries a JSON-RPC error code,
  message and optional data; `McpError.to_dict()` returns the JSON-RPC error
  object. `internal_error(message, data)` builds one with code `-32603`.
- `mirrordmcp.utils` – `get_pod_name(deployment, namespace)` and
  `update_mirrord_config(mirrord_config, deployment, namespace)`, both
  coroutines.
- `mirrordmcp.executor` – `execute_mirrord_run(cmd_str, deployment,
  mirrord_config, namespace)`, a coroutine returning the command's output.
- `mirrordmcp.tool` – `Request` and `MirrordService`, with `run`,
  `get_info`, `list_tools`, `call_tool` and `handle_message`.
  `MirrordService` takes an optional `runner` coroutine function used in place
  of `execute_mirrord_run`.
- `mirrordmcp.server` – `create_app(service_factory, sse_path, post_path)`
  builds the aiohttp application; `main(argv)` runs it.

## Limits

- The namespace is always `default`; the tool has no argument to change it.
- The only transport is HTTP with server-sent events; there is no stdio
  transport.
- The server has no authentication. Bind it only to addresses you trust.

## Running the tests

```
pip install ".[test]"
pytest
```