"""
Protocol Parser Module

This module translates between the HTTP view of a request (method, path,
body) and the Command/Response objects used by the request handler.
"""

from typing import Optional, Tuple
from urllib.parse import unquote

from .commands import Command, Operation, Response, ResponseStatus
from ..config.settings import settings


class ProtocolParser:
    """
    Parser for the KV-Store HTTP resource.

    Resource:
        PUT    /store/<key>   body = value  -> 201 Key created | 200 Key updated
        GET    /store/<key>                 -> 200 <value>     | 404 Key not found
        DELETE /store/<key>                 -> 200 Key deleted | 404 Key not found
        other  /store/<key>                 -> 405 Method not allowed

    An empty <key> segment, or the bare "/store" path, is answered with 400
    for every supported method.
    """

    STATUS_CODES = {
        ResponseStatus.OK: 200,
        ResponseStatus.CREATED: 201,
        ResponseStatus.UPDATED: 200,
        ResponseStatus.DELETED: 200,
        ResponseStatus.BAD_REQUEST: 400,
        ResponseStatus.NOT_FOUND: 404,
        ResponseStatus.METHOD_NOT_ALLOWED: 405,
        ResponseStatus.INTERNAL_ERROR: 500,
    }

    def __init__(self, prefix: str = None):
        self.prefix = prefix if prefix is not None else settings.STORE_PREFIX

    def matches(self, path: str) -> bool:
        """Check whether a request path addresses the store resource.

        The bare prefix without its trailing slash ("/store") counts as the
        resource with an empty key.
        """
        return path.startswith(self.prefix) or path == self.prefix.rstrip("/")

    def parse_request(self, method: str, path: str, body: Optional[bytes] = None) -> Command:
        """
        Build a Command from the pieces of an HTTP request.

        Args:
            method: HTTP method token (case-sensitive)
            path: Request path without the query string
            body: Raw request body, if any

        Returns:
            Command for the request. The key is the percent-decoded
            remainder of the path after the prefix and may be empty.

        Examples:
            >>> cmd = ProtocolParser().parse_request("PUT", "/store/foo", b"bar")
            >>> cmd.operation == Operation.PUT, cmd.key, cmd.value
            (True, 'foo', 'bar')
        """
        key = unquote(path[len(self.prefix):]) if self.matches(path) else ""
        return Command(
            operation=Operation.from_method(method),
            key=key,
            body=body,
            method=method,
        )

    def format_response(self, response: Response) -> Tuple[int, bytes]:
        """
        Format a Response into an HTTP status code and body.

        GET values are returned verbatim; every other outcome carries its
        human-readable message.
        """
        status_code = self.STATUS_CODES.get(response.status, 500)
        text = response.value if response.value is not None else response.message
        return status_code, text.encode("utf-8", errors="surrogateescape")
