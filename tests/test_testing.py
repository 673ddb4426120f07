"""Tests for roost.testing: the in-process client."""

from roost.server import ServerState
from roost.testing import TestClient

ECHO = """
from roost import Controller

class Echo(Controller):
    async def GET(self, request, reply, next):
        return {"query": request.query.to_dict()}

    async def PUT(self, request, reply, next):
        reply.header("X-Seen", request.headers.get("x-trace", "")).send(await request.body(), "text/plain")

default = Echo
"""


class TestClientLifecycle:
    async def test_owns_idle_server(self, project) -> None:
        server = project.server()
        async with TestClient(server):
            assert server.state is ServerState.RUNNING
        assert server.state is ServerState.IDLE

    async def test_leaves_running_server(self, project) -> None:
        server = project.server()
        await server.initialize(listen=False)
        async with TestClient(server):
            pass
        assert server.state is ServerState.RUNNING
        await server.destroy()


class TestRequests:
    async def test_query_merging(self, project) -> None:
        project.write("controllers/echo.controller.py", ECHO)
        async with TestClient(project.server()) as client:
            response = await client.get("/echo?a=1", query={"b": "2"})
            assert response.json() == {"query": {"a": "1", "b": "2"}}

    async def test_raw_body_and_headers(self, project) -> None:
        project.write("controllers/echo.controller.py", ECHO)
        async with TestClient(project.server()) as client:
            response = await client.put("/echo", body=b"payload", headers={"X-Trace": "t-1"})
            assert response.status == 200
            assert response.text == "payload"
            assert response.headers["x-seen"] == "t-1"
            assert response.headers["content-length"] == "7"
