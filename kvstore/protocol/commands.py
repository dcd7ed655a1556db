"""
Protocol Command and Response Definitions

This module defines the data structures exchanged between the transport
layer and the request handler.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class Operation(Enum):
    """Enumeration of operations on the store resource."""
    PUT = auto()
    GET = auto()
    DELETE = auto()
    UNKNOWN = auto()

    @classmethod
    def from_method(cls, method: str) -> "Operation":
        """Map an HTTP method token to an operation (UNKNOWN if unsupported).

        Method tokens are case-sensitive: "put" is not PUT.
        """
        return cls.__members__.get(method, cls.UNKNOWN)


class ResponseStatus(Enum):
    """Enumeration of request outcomes."""
    OK = "OK"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class Command:
    """
    Represents one decoded operation on the store resource.

    Attributes:
        operation: PUT, GET, DELETE or UNKNOWN
        key: The key for the operation (empty when missing from the path)
        body: The raw request body, None when the request carried none
        method: The original method token, kept for logging
    """
    operation: Operation
    key: str = ""
    body: Optional[bytes] = None
    method: str = ""

    @property
    def value(self) -> str:
        """The request body as the string value (empty if absent).

        Bytes that are not valid UTF-8 are kept as surrogates so the value
        encodes back to the exact body.
        """
        if not self.body:
            return ""
        return self.body.decode("utf-8", errors="surrogateescape")


@dataclass
class Response:
    """
    Represents the outcome of handling a command.

    Attributes:
        status: One of ResponseStatus
        message: Human-readable confirmation or error description
        value: The stored value (for successful GET operations)
    """
    status: ResponseStatus
    message: str = ""
    value: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in (
            ResponseStatus.OK,
            ResponseStatus.CREATED,
            ResponseStatus.UPDATED,
            ResponseStatus.DELETED,
        )

    @classmethod
    def created(cls) -> "Response":
        """Create a 'created' response for PUT on a new key."""
        return cls(status=ResponseStatus.CREATED, message="Key created")

    @classmethod
    def updated(cls) -> "Response":
        """Create an 'updated' response for PUT on an existing key."""
        return cls(status=ResponseStatus.UPDATED, message="Key updated")

    @classmethod
    def deleted(cls) -> "Response":
        """Create a 'deleted' response for DELETE operations."""
        return cls(status=ResponseStatus.DELETED, message="Key deleted")

    @classmethod
    def value_response(cls, value: str) -> "Response":
        """Create a GET response with a value."""
        return cls(status=ResponseStatus.OK, value=value)

    @classmethod
    def key_not_found(cls) -> "Response":
        return cls(status=ResponseStatus.NOT_FOUND, message="Key not found")

    @classmethod
    def missing_key(cls) -> "Response":
        return cls(
            status=ResponseStatus.BAD_REQUEST,
            message="Invalid request format, key missing in URL",
        )

    @classmethod
    def method_not_allowed(cls) -> "Response":
        return cls(status=ResponseStatus.METHOD_NOT_ALLOWED, message="Method not allowed")

    @classmethod
    def internal_error(cls, message: str = "Internal server error") -> "Response":
        return cls(status=ResponseStatus.INTERNAL_ERROR, message=message)
