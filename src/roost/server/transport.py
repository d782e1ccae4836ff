"""Transport startup: listen-argument normalization and the server handle.

``normalize_listen_args`` accepts the same overloads as a POSIX-style
``listen()``::

    listen()                       # ephemeral port, all interfaces
    listen(3000)                   # port, all interfaces
    listen(3000, "0.0.0.0")        # port and host
    listen({"port": 4000})         # options bag: port / host / path / backlog
    listen("/tmp/app.sock")        # Unix socket path
    listen(3000, on_ready)         # a trailing callable is the ready callback

The socket is bound here and handed to uvicorn, so bind errors surface as
``OSError`` from ``listen()``. The ready callback fires only after uvicorn
reports the socket as accepting connections.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

import uvicorn

from roost.errors import ConfigurationError

logger = logging.getLogger("roost.server")

ReadyCallback: TypeAlias = Callable[["HTTPServer"], Any]

_OPTION_KEYS = frozenset({"port", "host", "path", "backlog"})


@dataclass(frozen=True, slots=True)
class ListenOptions:
    """Normalized listen arguments. ``path`` selects a Unix socket."""

    port: int | None = None
    host: str | None = None
    path: str | None = None
    backlog: int = 2048


def is_pipe_name(value: Any) -> bool:
    """True for a string that does not read as a non-negative number."""
    if not isinstance(value, str):
        return False
    if not value.strip():
        return False
    try:
        return not float(value) >= 0
    except ValueError:
        return True


def normalize_listen_args(
    args: Sequence[Any],
) -> tuple[ListenOptions, Callable[..., Any] | None]:
    """Split variadic listen arguments into options and a callback."""
    rest = list(args)
    callback = rest.pop() if rest and callable(rest[-1]) else None
    if not rest:
        return ListenOptions(), callback

    first = rest[0]
    if isinstance(first, ListenOptions):
        return first, callback
    if isinstance(first, Mapping):
        unknown = sorted(set(first) - _OPTION_KEYS)
        if unknown:
            msg = f"Unknown listen option(s): {', '.join(unknown)}"
            raise ConfigurationError(msg)
        return (
            ListenOptions(
                port=_port(first.get("port")),
                host=first.get("host"),
                path=first.get("path"),
                backlog=int(first.get("backlog", 2048)),
            ),
            callback,
        )
    if is_pipe_name(first):
        return ListenOptions(path=first), callback

    host = rest[1] if len(rest) > 1 and isinstance(rest[1], str) else None
    return ListenOptions(port=_port(first), host=host), callback


def _port(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        msg = f"Invalid port: {value!r}"
        raise ConfigurationError(msg)
    try:
        port = int(value)
    except (TypeError, ValueError):
        msg = f"Invalid port: {value!r}"
        raise ConfigurationError(msg) from None
    if not 0 <= port <= 65535:
        msg = f"Port out of range: {port}"
        raise ConfigurationError(msg)
    return port


class _UvicornServer(uvicorn.Server):
    """uvicorn server that signals once its sockets accept connections."""

    def __init__(self, config: uvicorn.Config, started: asyncio.Event) -> None:
        super().__init__(config)
        self._started_event = started

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        await super().startup(sockets=sockets)
        if not self.should_exit:
            self._started_event.set()


class HTTPServer:
    """Handle on a running listener.

    Returned by ``Roost.listen()`` and passed to ready callbacks.
    """

    __slots__ = ("_server", "_socket", "_task", "app", "options")

    def __init__(self, app: Any, options: ListenOptions) -> None:
        self.app = app
        self.options = options
        self._socket: socket.socket | None = None
        self._server: _UvicornServer | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def host(self) -> str | None:
        return self.options.host

    @property
    def port(self) -> int | None:
        """Bound TCP port, the real one when listening on port 0."""
        if self._socket is None or self.options.path is not None:
            return self.options.port
        return self._socket.getsockname()[1]

    @property
    def path(self) -> str | None:
        return self.options.path

    @property
    def started(self) -> bool:
        return self._server is not None and self._server.started

    @property
    def url(self) -> str:
        if self.options.path is not None:
            return f"unix:{self.options.path}"
        return f"http://{self.options.host or 'localhost'}:{self.port}"

    async def start(self, callback: ReadyCallback | None = None) -> None:
        """Bind, start serving, and wait until connections are accepted."""
        sock = self._bind()
        self._socket = sock

        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            access_log=False,
            backlog=self.options.backlog,
        )
        started = asyncio.Event()
        self._server = _UvicornServer(config, started)
        self._task = asyncio.create_task(self._server.serve(sockets=[sock]))

        waiter = asyncio.create_task(started.wait())
        done, _ = await asyncio.wait({self._task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if waiter not in done:
            waiter.cancel()
            sock.close()
            self._task.result()
            msg = "transport stopped before accepting connections"
            raise RuntimeError(msg)

        logger.debug("listening on %s", self.url)
        if callback is not None:
            callback(self)

    async def wait(self) -> None:
        """Block until the server exits."""
        if self._task is not None:
            await self._task

    async def close(self) -> None:
        """Stop accepting connections and wait for shutdown."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        await self._task

    def _bind(self) -> socket.socket:
        opts = self.options
        if opts.path is not None:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.bind(opts.path)
            except OSError:
                sock.close()
                raise
            return sock
        return socket.create_server((opts.host or "", opts.port or 0), backlog=opts.backlog)

    def __repr__(self) -> str:
        return f"<HTTPServer {self.url} started={self.started}>"
