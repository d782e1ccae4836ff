"""ASGI response sending: turns the final Response state into messages.

Encoding (body rendering, header bytes) is split from sending so the
application can catch encoding failures while the request is still
inside its error handling.
"""

from typing import Any, TypeAlias

from roost._internal.asgi import Send
from roost.http.response import Response

Messages: TypeAlias = tuple[dict[str, Any], dict[str, Any]]


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def encode_response(response: Response, *, head: bool = False) -> Messages:
    """Render *response* into its ``http.response.start`` and body messages.

    ``Content-Length`` always reflects the encoded body, even for ``HEAD``
    where the body itself is dropped. Raises whatever rendering raises
    (unserializable JSON, headers outside latin-1).
    """
    payload, content_type = response.render()
    if not _body_allowed(response.status):
        payload = b""

    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", content_type.encode("latin-1")),
    ]
    for name, value in response.headers.items():
        if name in ("content-type", "content-length"):
            continue
        raw_headers.append((name.encode("latin-1"), value.encode("latin-1")))
    raw_headers.append((b"content-length", str(len(payload)).encode("latin-1")))

    start = {"type": "http.response.start", "status": response.status, "headers": raw_headers}
    body = {"type": "http.response.body", "body": b"" if head else payload}
    return start, body


async def send_messages(messages: Messages, send: Send) -> None:
    start, body = messages
    await send(start)
    await send(body)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Encode *response* and send it through ASGI ``send``."""
    await send_messages(encode_response(response, head=head), send)
