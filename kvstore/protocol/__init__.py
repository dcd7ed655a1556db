"""Protocol module for KV-Store."""

from .commands import Command, Operation, Response, ResponseStatus
from .handler import RequestHandler
from .parser import ProtocolParser

__all__ = [
    "Command",
    "Operation",
    "Response",
    "ResponseStatus",
    "RequestHandler",
    "ProtocolParser",
]
