"""
Integration Tests

End-to-end tests that verify the complete system works together: the HTTP
server, the command line client and the shared store.

Run with: python -m pytest tests/test_integration.py -v
"""

import asyncio
import pytest

from kvstore import client as kv_client


@pytest.mark.asyncio
@pytest.mark.integration
class TestEndToEnd:
    """End-to-end integration tests."""

    async def test_complete_workflow(self, server, client_factory):
        async with client_factory() as client:
            assert await client.request("PUT", "/store/foo", b"bar") == (201, b"Key created")
            assert await client.request("GET", "/store/foo") == (200, b"bar")
            assert await client.request("PUT", "/store/foo", b"baz") == (200, b"Key updated")
            assert (await client.request("DELETE", "/store/foo"))[0] == 200
            assert (await client.request("GET", "/store/foo"))[0] == 404

    async def test_empty_key_and_bad_method(self, server, client_factory):
        async with client_factory() as client:
            assert (await client.request("GET", "/store/"))[0] == 400
            assert (await client.request("PATCH", "/store/foo"))[0] == 405

    async def test_multiple_clients_shared_state(self, server, client_factory):
        async with client_factory() as client1:
            async with client_factory() as client2:
                await client1.request("PUT", "/store/shared", b"one")
                assert await client2.request("GET", "/store/shared") == (200, b"one")

                await client2.request("PUT", "/store/shared", b"two")
                assert await client1.request("GET", "/store/shared") == (200, b"two")


@pytest.mark.asyncio
@pytest.mark.integration
class TestClientAgainstServer:
    """Run the CLI client against a live server."""

    async def run_client(self, server_port, *args):
        argv = ["--host", "127.0.0.1", "--port", str(server_port), *args]
        return await asyncio.to_thread(kv_client.main, argv)

    async def test_put_get_delete(self, server, server_port, capsys):
        assert await self.run_client(server_port, "-m=put", "--key=foo", "--value=bar") == 0
        assert capsys.readouterr().out == "Key created\n"

        assert await self.run_client(server_port, "-m=PUT", "--key=foo", "--value=baz") == 0
        assert capsys.readouterr().out == "Key updated\n"

        assert await self.run_client(server_port, "-m=get", "--key=foo") == 0
        assert capsys.readouterr().out == "baz\n"

        assert await self.run_client(server_port, "-m=delete", "--key=foo") == 0
        assert capsys.readouterr().out == "Key deleted\n"

    async def test_get_missing_key(self, server, server_port, capsys):
        assert await self.run_client(server_port, "-m=get", "--key=nope") == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "Error: key not found\n"

    async def test_key_with_special_characters(self, server, server_port, capsys):
        assert await self.run_client(server_port, "-m=put", "--key=a/b c", "--value=v") == 0
        assert server.store.get("a/b c") == ("v", True)

    async def test_server_unreachable(self, server_port, capsys):
        # No server fixture: nothing is listening on the port
        assert await self.run_client(server_port, "-m=get", "--key=foo") == 1
        assert capsys.readouterr().err.startswith("Error executing request:")
