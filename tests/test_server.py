import asyncio
import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from mirrordmcp.server import create_app, main
from mirrordmcp.tool import MirrordService, TOOL_DESCRIPTION


async def fake_runner(cmd_str, deployment, mirrord_config, namespace):
    return f"{cmd_str}|{deployment}|{namespace}"


def make_app():
    return create_app(lambda: MirrordService(runner=fake_runner), "/sse", "/message")


async def read_event(content):
    name = None
    data = []
    while True:
        raw = await asyncio.wait_for(content.readline(), 5)
        if not raw:
            raise EOFError("stream ended")
        line = raw.decode("utf-8").rstrip("\r\n")
        if not line:
            if name is not None or data:
                return name, "\n".join(data)
            continue
        if line.startswith("event:"):
            name = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data.append(line[len("data:"):].strip())


@pytest.mark.asyncio
async def test_endpoint_event_and_tools_list():
    async with TestClient(TestServer(make_app())) as client:
        stream = await client.get("/sse")
        assert stream.headers["Content-Type"].startswith("text/event-stream")
        name, endpoint = await read_event(stream.content)
        assert name == "endpoint"
        assert endpoint.startswith("/message?sessionId=")

        posted = await client.post(
            endpoint, json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"}
        )
        assert posted.status == 202

        name, data = await read_event(stream.content)
        assert name == "message"
        reply = json.loads(data)
        assert reply["id"] == 1
        assert reply["result"]["tools"][0]["description"] == TOOL_DESCRIPTION
        stream.close()


@pytest.mark.asyncio
async def test_tool_call_over_sse():
    async with TestClient(TestServer(make_app())) as client:
        stream = await client.get("/sse")
        _, endpoint = await read_event(stream.content)
        await client.post(
            endpoint,
            json={
                "jsonrpc": "2.0",
                "id": "x",
                "method": "tools/call",
                "params": {
                    "name": "run",
                    "arguments": {
                        "cmd_str": "echo hi",
                        "deployment": "web",
                        "mirrord_config": "{}",
                    },
                },
            },
        )
        _, data = await read_event(stream.content)
        reply = json.loads(data)
        assert reply["result"]["content"][0]["text"] == "echo hi|web|default"
        stream.close()


@pytest.mark.asyncio
async def test_notification_produces_no_message_but_next_reply_arrives():
    async with TestClient(TestServer(make_app())) as client:
        stream = await client.get("/sse")
        _, endpoint = await read_event(stream.content)
        await client.post(
            endpoint, json={"jsonrpc": "2.0", "method": "notifications/initialized"}
        )
        await client.post(endpoint, json={"jsonrpc": "2.0", "id": 5, "method": "ping"})
        _, data = await read_event(stream.content)
        assert json.loads(data) == {"jsonrpc": "2.0", "id": 5, "result": {}}
        stream.close()


@pytest.mark.asyncio
async def test_post_without_session_id():
    async with TestClient(TestServer(make_app())) as client:
        response = await client.post("/message", json={"jsonrpc": "2.0"})
        assert response.status == 400


@pytest.mark.asyncio
async def test_post_unknown_session():
    async with TestClient(TestServer(make_app())) as client:
        response = await client.post(
            "/message?sessionId=unknown", json={"jsonrpc": "2.0", "id": 1, "method": "ping"}
        )
        assert response.status == 404


@pytest.mark.asyncio
async def test_post_invalid_json():
    async with TestClient(TestServer(make_app())) as client:
        stream = await client.get("/sse")
        _, endpoint = await read_event(stream.content)
        response = await client.post(
            endpoint, data=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status == 400
        stream.close()


@pytest.mark.asyncio
async def test_sessions_are_distinct():
    async with TestClient(TestServer(make_app())) as client:
        first = await client.get("/sse")
        second = await client.get("/sse")
        _, endpoint_a = await read_event(first.content)
        _, endpoint_b = await read_event(second.content)
        assert endpoint_a != endpoint_b
        first.close()
        second.close()


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as info:
        main(["--port", "not-a-number"])
    assert info.value.code == 2