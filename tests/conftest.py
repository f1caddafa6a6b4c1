"""Pytest configuration and fixtures."""

import asyncio
import json
import os
from decimal import Decimal
from typing import Callable, Optional

import httpx
import pytest
from web3 import Web3

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["RPC_URLS"] = "http://node-a.test"
os.environ.pop("TREASURY_PRIVATE_KEY", None)
os.environ.pop("ADMIN_TOKEN", None)

from treasury_relay.config import Settings
from treasury_relay.network.selector import EndpointSelector
from treasury_relay.rpc.client import JsonRpcClient
from treasury_relay.service import TreasuryService
from treasury_relay.utils.locks import clear_signer_locks

# Well-known development key (Hardhat account #0), never funded on mainnet
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DESTINATION = "0x4024Fd78E2AD5532FBF3ec2B3eC83870FAe45fC7"


def gwei(value) -> int:
    return Web3.to_wei(value, "gwei")


class FakeNode:
    """In-memory Ethereum JSON-RPC node served through httpx.MockTransport."""

    def __init__(
        self,
        balance_eth: str = "1.0",
        block_number: int = 19_000_000,
        base_fee: Optional[int] = gwei(20),
        priority_fee: Optional[int] = gwei(1),
        receipt_status: int = 1,
        pending_polls: int = 0,
        broadcast_error: Optional[str] = None,
        delay: float = 0.0,
    ):
        self.balance_wei = Web3.to_wei(Decimal(balance_eth), "ether")
        self.block_number = block_number
        self.base_fee = base_fee
        self.priority_fee = priority_fee
        self.receipt_status = receipt_status
        self.pending_polls = pending_polls
        self.broadcast_error = broadcast_error
        self.delay = delay
        self.nonce = 0
        self.calls: list[str] = []
        self.sent: list[str] = []
        self.inflight = 0
        self.max_inflight = 0
        self._pending: dict[str, int] = {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        if self.delay:
            await asyncio.sleep(self.delay)

        payload = json.loads(request.content)
        method = payload["method"]
        params = payload.get("params", [])
        self.calls.append(method)

        try:
            result = self._dispatch(method, params)
        except LookupError as e:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32000, "message": str(e)}},
            )

        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    def _dispatch(self, method: str, params: list):
        if method == "eth_blockNumber":
            return hex(self.block_number)
        if method == "eth_getBalance":
            return hex(self.balance_wei)
        if method == "eth_maxPriorityFeePerGas":
            if self.priority_fee is None:
                raise LookupError("the method eth_maxPriorityFeePerGas does not exist")
            return hex(self.priority_fee)
        if method == "eth_getBlockByNumber":
            block = {"number": hex(self.block_number)}
            if self.base_fee is not None:
                block["baseFeePerGas"] = hex(self.base_fee)
            return block
        if method == "eth_getTransactionCount":
            return hex(self.nonce)
        if method == "eth_sendRawTransaction":
            if self.broadcast_error:
                raise LookupError(self.broadcast_error)
            raw = params[0]
            tx_hash = Web3.to_hex(Web3.keccak(hexstr=raw))
            self.sent.append(raw)
            self.nonce += 1
            self.inflight += 1
            self.max_inflight = max(self.max_inflight, self.inflight)
            self._pending[tx_hash] = self.pending_polls
            return tx_hash
        if method == "eth_getTransactionReceipt":
            tx_hash = params[0]
            if self._pending.get(tx_hash, 0) > 0:
                self._pending[tx_hash] -= 1
                return None
            self._pending.pop(tx_hash, None)
            self.inflight -= 1
            self.block_number += 1
            return {
                "transactionHash": tx_hash,
                "blockNumber": hex(self.block_number),
                "gasUsed": hex(21000),
                "status": hex(self.receipt_status),
            }
        raise LookupError(f"the method {method} does not exist")


def node_factory(nodes: dict) -> Callable[[str], JsonRpcClient]:
    """Client factory mapping each candidate URL to its fake node."""
    return lambda url: JsonRpcClient(url, 1, timeout=5.0, transport=nodes[url].transport())


def make_settings(**overrides) -> Settings:
    values = {
        "treasury_private_key": TEST_PRIVATE_KEY,
        "rpc_urls": "http://node-a.test",
        "confirmation_poll_interval": 0.0,
        "confirmation_timeout": 5.0,
        "submission_lock_timeout": 5.0,
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)


def make_service(node: FakeNode, **overrides) -> TreasuryService:
    settings = make_settings(**overrides)
    nodes = {url: node for url in settings.rpc_url_list}
    selector = EndpointSelector(
        settings.rpc_url_list,
        chain_id=settings.chain_id,
        probe_timeout=settings.rpc_probe_timeout,
        client_factory=node_factory(nodes),
    )
    return TreasuryService(settings, selector=selector)


@pytest.fixture(autouse=True)
def reset_locks():
    """Clear signer locks before each test."""
    clear_signer_locks()
    yield
    clear_signer_locks()


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()
