#!/usr/bin/env python3
"""
KV-Store Command Line Client

Issues exactly one request against the KV-Store server and exits.

Usage:
    python -m kvstore.client -m=put --key=foo --value=bar
    python -m kvstore.client -m=get --key=foo
    python -m kvstore.client -m=delete --key=foo

Exit status is 0 when the server answered with 200/201 and 1 otherwise.
"""

import argparse
import logging
import sys
import urllib.error
import urllib.request
from typing import Optional, Tuple
from urllib.parse import quote

from .config.settings import settings

logger = logging.getLogger(__name__)

METHODS = ("put", "get", "delete")

EXAMPLES = """\
METHOD: put, get, or delete
KEY: The key to interact with
VALUE: The value to set (only for put method)

Examples:
  Set a key-value pair:
    kvstore-client -m=put --key=foo --value=bar

  Get the value of a key:
    kvstore-client -m=get --key=foo

  Delete a key:
    kvstore-client -m=delete --key=foo
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvstore-client",
        usage="%(prog)s -m=METHOD --key=KEY [--value=VALUE]",
        description="Send one request to the KV-Store server",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-m", dest="method", default="", help="Method: put, get, or delete")
    parser.add_argument("--key", default="", help="Key")
    parser.add_argument("--value", default="", help="Value (only for put)")
    parser.add_argument("--host", default=settings.CLIENT_HOST, help="Server host")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Server port")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.CLIENT_TIMEOUT,
        help="Request timeout in seconds",
    )
    return parser


def send_request(
        method: str,
        key: str,
        value: Optional[str] = None,
        host: str = None,
        port: int = None,
        timeout: float = None,
) -> Tuple[int, str, str]:
    """
    Send one request to the store resource.

    Args:
        method: put, get or delete (any case)
        key: The key, percent-encoded into the path
        value: Request body for put

    Returns:
        (status code, reason phrase, response body)

    Raises:
        urllib.error.URLError: the server could not be reached
    """
    host = host if host is not None else settings.CLIENT_HOST
    port = port if port is not None else settings.PORT
    timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT

    url = f"http://{host}:{port}{settings.STORE_PREFIX}{quote(key, safe='')}"
    data = value.encode("utf-8") if value is not None else None
    request = urllib.request.Request(url, data=data, method=method.upper())
    logger.debug(f"{request.get_method()} {url}")

    # The store is always addressed directly, never through an env proxy
    opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))
    try:
        with opener.open(request, timeout=timeout) as resp:
            return resp.status, resp.reason, resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        # Non-2xx statuses still carry a response
        body = exc.read().decode("utf-8", errors="replace")
        exc.close()
        return exc.code, str(exc.reason), body


def main(argv=None) -> int:
    """Run the client and return the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.method or not args.key:
        parser.print_help(sys.stderr)
        print("Error: method and key flags must be provided", file=sys.stderr)
        return 1

    method = args.method.lower()
    if method not in METHODS:
        print("Error: invalid method, must be 'put', 'get', or 'delete'", file=sys.stderr)
        return 1

    if method == "put" and not args.value:
        print("Error: value flag must be provided for put method", file=sys.stderr)
        return 1

    try:
        status, reason, body = send_request(
            method,
            args.key,
            value=args.value if method == "put" else None,
            host=args.host,
            port=args.port,
            timeout=args.timeout,
        )
    except (urllib.error.URLError, OSError) as exc:
        print(f"Error executing request: {exc}", file=sys.stderr)
        return 1

    if status in (200, 201):
        print(body)
        return 0

    if status == 404:
        print("Error: key not found", file=sys.stderr)
    elif status == 405:
        print("Error: method not allowed", file=sys.stderr)
    else:
        print(f"Error: {status} {reason}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
