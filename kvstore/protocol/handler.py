"""
Request Handler Module

Translates one decoded command into a store call and a tagged Response.
"""

import logging

from ..cache.store import KVStore
from .commands import Command, Operation, Response

logger = logging.getLogger(__name__)


class RequestHandler:
    """
    Maps PUT/GET/DELETE commands onto a KVStore.

    The handler keeps no state of its own besides the store reference,
    so a single instance is shared by every worker. Validation failures
    (unsupported operation, missing key) are answered without touching
    the store.
    """

    def __init__(self, store: KVStore):
        self.store = store

    def handle(self, command: Command) -> Response:
        """
        Execute a command on the store.

        Args:
            command: The Command object to execute

        Returns:
            Response object with the result
        """
        if command.operation == Operation.UNKNOWN:
            return Response.method_not_allowed()

        if not command.key:
            return Response.missing_key()

        if command.operation == Operation.PUT:
            created = self.store.set(command.key, command.value)
            logger.debug(f"PUT {command.key!r} created={created}")
            return Response.created() if created else Response.updated()

        if command.operation == Operation.GET:
            value, found = self.store.get(command.key)
            return Response.value_response(value) if found else Response.key_not_found()

        if command.operation == Operation.DELETE:
            found = self.store.delete(command.key)
            logger.debug(f"DELETE {command.key!r} found={found}")
            return Response.deleted() if found else Response.key_not_found()

        return Response.method_not_allowed()
