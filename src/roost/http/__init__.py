"""HTTP request/response types used by the application pipeline."""

from roost.http.headers import Headers
from roost.http.query import QueryParams
from roost.http.request import Request
from roost.http.response import Response

__all__ = ["Headers", "QueryParams", "Request", "Response"]
