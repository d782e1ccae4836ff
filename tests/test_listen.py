"""Tests for listen-argument normalization and the live transport."""

from pathlib import Path

import httpx
import pytest

from roost import Roost
from roost.errors import ConfigurationError
from roost.server.transport import HTTPServer, ListenOptions, is_pipe_name, normalize_listen_args
from roost.signals import PLUGIN_READY, READY


def on_ready(server: HTTPServer) -> None:
    pass


class TestNormalizeListenArgs:
    def test_no_arguments(self) -> None:
        assert normalize_listen_args(()) == (ListenOptions(), None)

    def test_port(self) -> None:
        assert normalize_listen_args((3000,)) == (ListenOptions(port=3000), None)

    def test_numeric_string_port(self) -> None:
        assert normalize_listen_args(("3000",)) == (ListenOptions(port=3000), None)

    def test_port_and_host(self) -> None:
        options, callback = normalize_listen_args((3000, "0.0.0.0"))
        assert options == ListenOptions(port=3000, host="0.0.0.0")
        assert callback is None

    def test_options_bag(self) -> None:
        options, _ = normalize_listen_args(({"port": 4000, "host": "127.0.0.1", "backlog": 16},))
        assert options == ListenOptions(port=4000, host="127.0.0.1", backlog=16)

    def test_listen_options_passthrough(self) -> None:
        given = ListenOptions(port=5000)
        assert normalize_listen_args((given,)) == (given, None)

    def test_pipe_name(self) -> None:
        options, _ = normalize_listen_args(("/tmp/app.sock",))
        assert options == ListenOptions(path="/tmp/app.sock")

    def test_trailing_callback(self) -> None:
        assert normalize_listen_args((3000, on_ready)) == (ListenOptions(port=3000), on_ready)
        assert normalize_listen_args((on_ready,)) == (ListenOptions(), on_ready)
        assert normalize_listen_args((3000, "::1", on_ready))[1] is on_ready

    def test_unknown_option_key(self) -> None:
        with pytest.raises(ConfigurationError, match="prot"):
            normalize_listen_args(({"prot": 3000},))

    @pytest.mark.parametrize("port", [-1, 70000, True, 1.5j])
    def test_invalid_port(self, port: object) -> None:
        with pytest.raises(ConfigurationError):
            normalize_listen_args((port,))

    def test_is_pipe_name(self) -> None:
        assert is_pipe_name("/tmp/app.sock")
        assert is_pipe_name("\\\\.\\pipe\\app")
        assert not is_pipe_name("8080")
        assert not is_pipe_name(8080)
        assert not is_pipe_name("")


class TestLiveServer:
    async def test_serves_after_plugins(self, tmp_path: Path, write) -> None:
        write(
            "controllers/ping.py",
            """
            from roost import BaseController

            class Ping(BaseController):
                def get(self):
                    return {"pong": True}
            """,
        )
        runtime = Roost("blog", {"root_path": tmp_path, "logger": {"access_log": False}})
        events: list[str] = []
        handles: list[HTTPServer] = []
        runtime.on(PLUGIN_READY, lambda: events.append("pluginReady"))
        runtime.on(READY, lambda rt: events.append("ready"))

        server = await runtime.listen(0, "127.0.0.1", handles.append)
        try:
            assert events == ["pluginReady", "ready"]
            assert handles == [server]
            assert runtime.http_server is server
            assert server.started
            assert server.port and server.port > 0

            async with httpx.AsyncClient(base_url=server.url) as client:
                response = await client.get("/ping")
            assert response.status_code == 200
            assert response.json() == {"pong": True}
            assert "x-request-id" in response.headers
        finally:
            await server.close()


    async def test_bind_error_surfaces(self, runtime_options: dict) -> None:
        first = Roost("one", runtime_options)
        server = await first.listen(0, "127.0.0.1")
        try:
            second = Roost("two", dict(runtime_options))
            with pytest.raises(OSError):
                await second.listen(server.port, "127.0.0.1")
        finally:
            await server.close()


PING = """
    from roost import BaseController

    class Ping(BaseController):
        def get(self):
            return "pong"
"""


class _Lines:
    def __init__(self, events: list[str]) -> None:
        self.events = events

    def info(self, msg: str) -> None:
        self.events.append(f"log:{msg}")


def _live_runtime(root: Path, events: list[str]) -> Roost:
    runtime = Roost(
        "blog",
        {"root_path": root, "custom_logger": _Lines(events), "logger": {"access_log": False}},
    )
    runtime.on(PLUGIN_READY, lambda: events.append("pluginReady"))
    runtime.on(READY, lambda rt: events.append("ready"))
    return runtime


def _boot_free(events: list[str]) -> list[str]:
    """The events from ``pluginReady`` on; boot-time module logs dropped."""
    return events[events.index("pluginReady") :]


class TestListenForms:
    async def test_options_bag(self, tmp_path: Path, write) -> None:
        write("controllers/ping.py", PING)
        events: list[str] = []
        runtime = _live_runtime(tmp_path, events)

        def on_ready(server: HTTPServer) -> None:
            events.append(f"callback:{server.started}")

        server = await runtime.listen({"port": 0, "host": "127.0.0.1"}, on_ready)
        try:
            assert _boot_free(events) == [
                "pluginReady",
                "ready",
                f"log:blog is starting at http://127.0.0.1:{server.port}",
                "callback:True",
            ]
            async with httpx.AsyncClient(base_url=server.url) as client:
                response = await client.get("/ping")
            assert response.status_code == 200
            assert response.text == "pong"
        finally:
            await server.close()

    async def test_port_on_default_host(self, tmp_path: Path, write) -> None:
        write("controllers/ping.py", PING)
        events: list[str] = []
        runtime = _live_runtime(tmp_path, events)
        handles: list[HTTPServer] = []

        server = await runtime.listen(0, handles.append)
        try:
            assert server.host is None
            assert handles == [server]
            assert server.url == f"http://localhost:{server.port}"
            assert f"log:blog is starting at http://localhost:{server.port}" in events
            async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server.port}") as client:
                response = await client.get("/ping")
            assert response.text == "pong"
        finally:
            await server.close()

    async def test_unix_socket(self, tmp_path: Path, write) -> None:
        write("controllers/ping.py", PING)
        events: list[str] = []
        runtime = _live_runtime(tmp_path, events)
        sock_path = str(tmp_path / "s.sock")

        def on_ready(server: HTTPServer) -> None:
            events.append("callback")

        server = await runtime.listen(sock_path, on_ready)
        try:
            assert server.path == sock_path
            assert server.url == f"unix:{sock_path}"
            assert _boot_free(events) == [
                "pluginReady",
                "ready",
                f"log:blog is starting at unix:{sock_path}",
                "callback",
            ]
            transport = httpx.AsyncHTTPTransport(uds=sock_path)
            async with httpx.AsyncClient(transport=transport, base_url="http://roost") as client:
                response = await client.get("/ping")
            assert response.status_code == 200
            assert response.text == "pong"
        finally:
            await server.close()
