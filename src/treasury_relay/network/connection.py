"""The committed network connection and the signer it owns."""

import logging
from dataclasses import dataclass
from typing import Optional

from treasury_relay.errors import SigningError
from treasury_relay.network.selector import EndpointSelector
from treasury_relay.rpc.client import JsonRpcClient
from treasury_relay.signing import TreasurySigner, load_signer

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """A live endpoint bound to one chain, plus the treasury signer.

    Attributes:
        endpoint: URL of the committed RPC endpoint
        chain_id: Network identity the client is bound to
        client: Open JSON-RPC client for the endpoint
        block_number: Chain height seen by the liveness probe
        signer: Treasury signer, None when no usable key is configured
        signer_error: Why the signer is missing
    """
    endpoint: str
    chain_id: int
    client: JsonRpcClient
    block_number: int
    signer: Optional[TreasurySigner] = None
    signer_error: Optional[str] = None

    @classmethod
    async def establish(
        cls, selector: EndpointSelector, private_key: Optional[str]
    ) -> "Connection":
        """Select an endpoint and attach the signer.

        Raises:
            ConnectivityError: If no candidate endpoint answers
        """
        selected = await selector.select()
        signer, signer_error = load_signer(private_key)
        return cls(
            endpoint=selected.url,
            chain_id=selector.chain_id,
            client=selected.client,
            block_number=selected.block_number,
            signer=signer,
            signer_error=signer_error,
        )

    def require_signer(self) -> TreasurySigner:
        """Return the signer or fail the submission.

        Raises:
            SigningError: If no signer is available
        """
        if self.signer is None:
            raise SigningError(self.signer_error or "Treasury signer not available")
        return self.signer

    async def close(self) -> None:
        await self.client.aclose()
        logger.debug(f"Closed connection to {self.endpoint}")
