"""RPC endpoint selection with ordered failover.

Candidates are probed in priority order with a cheap ``eth_blockNumber``
call; the first one to answer inside the probe timeout wins and the rest are
never contacted.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from treasury_relay.errors import ConnectivityError, RpcError
from treasury_relay.rpc.client import JsonRpcClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], JsonRpcClient]


@dataclass
class SelectedEndpoint:
    """Outcome of a successful probe."""
    url: str
    client: JsonRpcClient
    block_number: int


class EndpointSelector:
    """Probe RPC candidates in order and commit to the first live one."""

    def __init__(
        self,
        candidates: Sequence[str],
        chain_id: int = 1,
        probe_timeout: float = 5.0,
        request_timeout: float = 30.0,
        client_factory: Optional[ClientFactory] = None,
    ):
        if not candidates:
            raise ValueError("At least one RPC candidate is required")
        self.candidates = list(candidates)
        self.chain_id = chain_id
        self.probe_timeout = probe_timeout
        self._client_factory = client_factory or (
            lambda url: JsonRpcClient(url, chain_id, timeout=request_timeout)
        )

    async def select(self) -> SelectedEndpoint:
        """Return the first candidate that answers a liveness probe.

        Safe to call again after a failure; every call starts from the top
        of the list.

        Raises:
            ConnectivityError: If every candidate fails or times out
        """
        for url in self.candidates:
            logger.info(f"Trying RPC: {url}")
            client = self._client_factory(url)

            try:
                block_number = await asyncio.wait_for(
                    client.block_number(), timeout=self.probe_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(f"Failed: {url} - Timeout")
                await client.aclose()
                continue
            except RpcError as e:
                logger.warning(f"Failed: {url} - {str(e)[:50]}")
                await client.aclose()
                continue
            except Exception as e:
                logger.warning(f"Failed: {url} - unexpected reply: {str(e)[:50]}")
                await client.aclose()
                continue

            logger.info(f"Connected at block: {block_number} ({url})")
            return SelectedEndpoint(url=url, client=client, block_number=block_number)

        logger.error(f"No RPC endpoint reachable ({len(self.candidates)} candidates tried)")
        raise ConnectivityError("No RPC endpoint reachable")
