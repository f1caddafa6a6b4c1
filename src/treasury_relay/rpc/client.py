"""Minimal async Ethereum JSON-RPC client over httpx.

Only the handful of calls the treasury needs: liveness, balance, fee data,
nonce, broadcast and receipt lookup.
"""

import itertools
import logging
from typing import Any, Optional

import httpx

from treasury_relay.errors import RpcError

logger = logging.getLogger(__name__)


def hex_to_int(value: Optional[str]) -> Optional[int]:
    """Decode a JSON-RPC quantity, passing None through."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


class JsonRpcClient:
    """JSON-RPC client bound to one endpoint and one expected chain.

    The chain ID is fixed at construction and never queried from the node,
    so a probe costs exactly one request.
    """

    def __init__(
        self,
        url: str,
        chain_id: int,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.chain_id = chain_id
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, params: Optional[list] = None) -> Any:
        """Issue a JSON-RPC request and return its ``result``.

        Raises:
            RpcError: On transport failure, non-200 status or a node error
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise RpcError(f"{method} failed: {e}") from e
        except RuntimeError as e:
            # raised by httpx once the client has been closed
            raise RpcError(f"{method} failed: {e}") from e

        if response.status_code != 200:
            raise RpcError(f"{method} failed: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(f"{method} failed: invalid JSON response") from e

        if not isinstance(data, dict):
            raise RpcError(f"{method} failed: malformed response")

        if data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                raise RpcError(error.get("message", str(error)), code=error.get("code"))
            raise RpcError(str(error))

        return data.get("result")

    async def block_number(self) -> int:
        result = await self.call("eth_blockNumber")
        if result is None:
            raise RpcError("eth_blockNumber failed: empty result")
        return hex_to_int(result)

    async def get_balance(self, address: str, block: str = "latest") -> int:
        """Get account balance in wei."""
        return hex_to_int(await self.call("eth_getBalance", [address, block]))

    async def get_block(self, block: str = "latest") -> Optional[dict]:
        return await self.call("eth_getBlockByNumber", [block, False])

    async def max_priority_fee(self) -> int:
        return hex_to_int(await self.call("eth_maxPriorityFeePerGas"))

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return hex_to_int(await self.call("eth_getTransactionCount", [address, block]))

    async def send_raw_transaction(self, raw_tx_hex: str) -> str:
        """Broadcast a signed transaction and return its hash."""
        if not raw_tx_hex.startswith("0x"):
            raw_tx_hex = f"0x{raw_tx_hex}"
        return await self.call("eth_sendRawTransaction", [raw_tx_hex])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        """Get a receipt, or None while the transaction is pending."""
        return await self.call("eth_getTransactionReceipt", [tx_hash])
