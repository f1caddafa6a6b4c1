"""Tests for the JSON-RPC client."""

import httpx
import pytest

from conftest import FakeNode
from treasury_relay.errors import RpcError
from treasury_relay.rpc.client import JsonRpcClient, hex_to_int


def reply_client(body) -> JsonRpcClient:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    return JsonRpcClient("http://node", 1, transport=transport)


class TestJsonRpcClient:

    @pytest.mark.asyncio
    async def test_block_number(self):
        client = JsonRpcClient("http://node", 1, transport=FakeNode(block_number=255).transport())

        assert await client.block_number() == 255
        await client.aclose()

    @pytest.mark.asyncio
    async def test_node_error(self):
        client = reply_client({"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "boom"}})

        with pytest.raises(RpcError, match="boom") as exc_info:
            await client.call("eth_chainId")
        await client.aclose()

        assert exc_info.value.code == -32000

    @pytest.mark.asyncio
    async def test_non_object_reply(self):
        client = reply_client(["oops"])

        with pytest.raises(RpcError, match="malformed response"):
            await client.call("eth_blockNumber")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_empty_block_number(self):
        client = reply_client({"jsonrpc": "2.0", "id": 1, "result": None})

        with pytest.raises(RpcError, match="empty result"):
            await client.block_number()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_status_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        client = JsonRpcClient("http://node", 1, transport=transport)

        with pytest.raises(RpcError, match="HTTP 503"):
            await client.block_number()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_closed_client(self):
        client = JsonRpcClient("http://node", 1, transport=FakeNode().transport())
        await client.aclose()

        with pytest.raises(RpcError, match="eth_getTransactionReceipt failed"):
            await client.get_transaction_receipt("0x" + "00" * 32)


def test_hex_to_int():
    assert hex_to_int(None) is None
    assert hex_to_int("0x10") == 16
    assert hex_to_int(7) == 7
