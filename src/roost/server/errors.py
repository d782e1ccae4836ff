"""Error mapping for the request pipeline.

``HTTPError`` becomes a response with its own status and headers. Any
other exception becomes a 500; the application then hands it to its error
listeners, which is where the runtime logs it.
"""

import logging
import traceback

from roost.context import Context
from roost.errors import HTTPError

logger = logging.getLogger("roost.server")


def apply_http_error(ctx: Context, exc: HTTPError) -> None:
    """Replace the response with the error's status, detail and headers."""
    logger.debug("%d %s %s: %s", exc.status, ctx.method, ctx.path, exc.detail)
    response = ctx.response
    response.status = exc.status
    response.body = exc.detail or f"Error {exc.status}"
    response.content_type = "text/plain; charset=utf-8"
    for name, value in exc.headers:
        response.set_header(name, value)


def apply_internal_error(ctx: Context, exc: Exception, *, debug: bool) -> None:
    """Replace the response with a 500. Debug mode shows the traceback."""
    response = ctx.response
    response.status = 500
    response.content_type = "text/plain; charset=utf-8"
    if debug:
        response.body = "".join(traceback.format_exception(exc))
    else:
        response.body = "Internal Server Error"
