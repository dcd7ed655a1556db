"""
Async HTTP Server Module

This module implements the asynchronous HTTP/1.1 server for KV-Store.

The event loop owns all socket I/O: it reads and decodes requests and
writes responses. Every decoded command is then executed on a thread pool,
so several store operations can be in flight at once and the store's lock
is what serializes them.
"""

import asyncio
import logging
import time
from asyncio import StreamReader, StreamWriter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit

from ..cache.store import KVStore
from ..config.settings import settings
from ..protocol.commands import Response
from ..protocol.handler import RequestHandler
from ..protocol.parser import ProtocolParser

logger = logging.getLogger(__name__)


class MalformedRequestError(Exception):
    """The request line or headers could not be decoded."""


class RequestBodyError(Exception):
    """The request body could not be read."""


@dataclass
class HTTPRequest:
    method: str
    path: str
    version: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def keep_alive(self) -> bool:
        connection = self.headers.get("connection", "").lower()
        if connection == "close":
            return False
        if self.version == "HTTP/1.0":
            return connection == "keep-alive"
        return True


class KVServer:
    """
    Asynchronous HTTP server for the KV-Store service.

    Features:
    - Non-blocking socket I/O with asyncio
    - Persistent connections (multiple requests per connection)
    - Store operations executed on a pool of worker threads
    - Transport failures confined to the connection that caused them

    Usage:
        server = KVServer(host='0.0.0.0', port=8080, store=KVStore())
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address
        port: Server port number
        store: The KVStore instance shared by all connections
        handler: The RequestHandler wrapping the store
        parser: The ProtocolParser mapping HTTP to commands and back
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
            workers: int = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            store: KVStore instance (creates new one if not provided)
            workers: Size of the worker pool (default from settings)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else KVStore()
        self.workers = workers if workers is not None else settings.WORKERS
        self.handler = RequestHandler(self.store)
        self.parser = ProtocolParser()

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    async def read_request(self, reader: StreamReader) -> Optional[HTTPRequest]:
        """
        Read one HTTP request from the connection.

        Returns:
            The request, or None if the client closed the connection or
            stayed idle past the read timeout.

        Raises:
            MalformedRequestError: request line or headers are invalid
            RequestBodyError: the body could not be read
        """
        try:
            request_line = await asyncio.wait_for(
                reader.readline(),
                timeout=settings.READ_TIMEOUT,
            )
        except asyncio.TimeoutError:
            return None
        except ValueError as exc:
            raise MalformedRequestError(str(exc)) from exc

        if not request_line:
            return None

        try:
            method, target, version = request_line.decode("latin-1").strip().split(" ", 2)
        except ValueError as exc:
            raise MalformedRequestError(f"bad request line: {request_line!r}") from exc

        headers = await self._read_headers(reader)
        if headers is None:
            return None

        return HTTPRequest(
            method=method,
            path=urlsplit(target).path,
            version=version.upper(),
            headers=headers,
            body=await self._read_body(reader, headers),
        )

    async def _read_headers(self, reader: StreamReader) -> Optional[Dict[str, str]]:
        headers = {}
        count = 0
        size = 0
        # One deadline for the whole header block, not per line
        deadline = asyncio.get_running_loop().time() + settings.READ_TIMEOUT
        while True:
            remaining = deadline - asyncio.get_running_loop().time()
            try:
                line = await asyncio.wait_for(reader.readline(), timeout=max(remaining, 0))
            except asyncio.TimeoutError:
                return None
            except ValueError as exc:
                raise MalformedRequestError(str(exc)) from exc

            if not line:
                return None
            if line in (b"\r\n", b"\n"):
                return headers

            count += 1
            size += len(line)
            if count > settings.MAX_HEADER_COUNT or size > settings.MAX_HEADER_BYTES:
                raise MalformedRequestError("request headers too large")

            header_line = line.decode("latin-1").strip()
            if ":" in header_line:
                name, value = header_line.split(":", 1)
                headers[name.strip().lower()] = value.strip()

    async def _read_body(self, reader: StreamReader, headers: Dict[str, str]) -> bytes:
        encoding = headers.get("transfer-encoding", "identity").lower()
        if encoding != "identity":
            raise RequestBodyError(f"unsupported transfer encoding: {encoding}")

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError as exc:
            raise RequestBodyError("invalid content-length") from exc

        if content_length < 0:
            raise RequestBodyError("invalid content-length")
        if content_length > settings.MAX_BODY_SIZE:
            raise RequestBodyError("request body too large")
        if content_length == 0:
            return b""

        try:
            return await asyncio.wait_for(
                reader.readexactly(content_length),
                timeout=settings.BODY_TIMEOUT,
            )
        except (asyncio.IncompleteReadError, asyncio.TimeoutError) as exc:
            raise RequestBodyError("truncated request body") from exc

    async def dispatch(self, request: HTTPRequest) -> Tuple[int, bytes]:
        """
        Route a request to the handler and return (status code, body).

        Paths outside the store prefix are answered with 404 directly.
        """
        if not self.parser.matches(request.path):
            return 404, b"Route not found"

        command = self.parser.parse_request(request.method, request.path, request.body)
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(self._executor, self.handler.handle, command)
        except Exception as exc:
            logger.exception(f"Handler error for {command.method} {command.key!r}: {exc}")
            response = Response.internal_error()

        return self.parser.format_response(response)

    def build_response(self, status: int, body: bytes, keep_alive: bool = True) -> bytes:
        """Build HTTP response bytes."""
        try:
            reason = HTTPStatus(status).phrase
        except ValueError:
            reason = "Unknown"

        headers = {
            "content-type": "text/plain; charset=utf-8",
            "content-length": str(len(body)),
            "connection": "keep-alive" if keep_alive else "close",
            "server": "KVStore/1.0",
        }
        header_lines = "".join(f"{name}: {value}\r\n" for name, value in headers.items())

        return (
            f"HTTP/1.1 {status} {reason}\r\n".encode()
            + header_lines.encode()
            + b"\r\n"
            + body
        )

    async def _send(self, writer: StreamWriter, status: int, body: bytes, keep_alive: bool) -> None:
        writer.write(self.build_response(status, body, keep_alive))
        await writer.drain()

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads requests until the client disconnects, asks to close the
        connection, or sends something that cannot be decoded. A failure on
        one connection never reaches the store or other connections.
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                try:
                    request = await self.read_request(reader)
                except MalformedRequestError as exc:
                    logger.warning(f"Malformed request from {addr}: {exc}")
                    await self._send(writer, 400, b"Malformed request", keep_alive=False)
                    break
                except RequestBodyError as exc:
                    logger.warning(f"Failed to read request body from {addr}: {exc}")
                    await self._send(writer, 500, b"Failed to read request body", keep_alive=False)
                    break

                if request is None:
                    logger.debug(f"Client disconnected: {addr}")
                    break

                self._total_requests += 1
                start_time = time.perf_counter()
                logger.debug(f"--> {request.method} {request.path}")

                status, body = await self.dispatch(request)
                keep_alive = request.keep_alive
                await self._send(writer, status, body, keep_alive)

                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(f"<-- {status} - {len(body)} bytes - {elapsed_ms:.2f}ms")

                if not keep_alive:
                    break

        except ConnectionResetError:
            logger.debug(f"Connection reset by client: {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError) as exc:
                logger.debug(f"Error closing connection {addr}: {exc}")

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until cancelled or until stop() is called.

        Example:
            server = KVServer(port=8080)
            asyncio.run(server.start())
        """
        if self._running:
            return

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers,
                thread_name_prefix="kvstore-worker",
            )

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs} with {self.workers} workers")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Closes the listening socket and waits for in-flight store
        operations to finish.
        """
        if self._server is not None:
            self._server.close()
            try:
                await self._server.wait_closed()
            finally:
                self._server = None
                self._running = False

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with server stats including connection counts,
            request counts, and store statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "workers": self.workers,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "store_stats": self.store.get_stats(),
        }
