"""High-gas fee policy for fast confirmations.

The network's own EIP-1559 suggestion is inflated (priority fee x3, max fee
x2 plus the inflated tip) and then clamped up to fixed floors, so the offer
scales with congestion and never drops below a competitive bid.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from treasury_relay.config import Settings
from treasury_relay.errors import RpcError
from treasury_relay.network.connection import Connection
from treasury_relay.rpc.client import JsonRpcClient, hex_to_int

logger = logging.getLogger(__name__)


def gwei(value: int) -> int:
    """Convert gwei to wei."""
    return Web3.to_wei(value, "gwei")


@dataclass(frozen=True)
class NetworkFeeData:
    """Fee suggestion read from the node; None means not available."""
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class FeeOffer:
    """EIP-1559 fee parameters in wei."""
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    def to_tx_fields(self) -> dict:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


@dataclass(frozen=True)
class FeePolicy:
    """Multipliers, floors and fallbacks, all fees in wei."""
    priority_fee_multiplier: int = 3
    max_fee_multiplier: int = 2
    min_priority_fee: int = gwei(5)
    min_max_fee: int = gwei(50)
    fallback_max_fee: int = gwei(30)
    fallback_priority_fee: int = gwei(2)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeePolicy":
        return cls(
            priority_fee_multiplier=settings.priority_fee_multiplier,
            max_fee_multiplier=settings.max_fee_multiplier,
            min_priority_fee=gwei(settings.min_priority_fee_gwei),
            min_max_fee=gwei(settings.min_max_fee_gwei),
            fallback_max_fee=gwei(settings.fallback_max_fee_gwei),
            fallback_priority_fee=gwei(settings.fallback_priority_fee_gwei),
        )


def compute_fee_offer(data: NetworkFeeData, policy: FeePolicy) -> FeeOffer:
    """Derive the fee offer from network data.

    Zero or missing values are replaced by the fallbacks before any math.
    """
    base_fee = data.max_fee_per_gas or policy.fallback_max_fee
    network_priority = data.max_priority_fee_per_gas or policy.fallback_priority_fee

    priority_fee = network_priority * policy.priority_fee_multiplier
    max_fee = base_fee * policy.max_fee_multiplier + priority_fee

    priority_fee = max(priority_fee, policy.min_priority_fee)
    max_fee = max(max_fee, policy.min_max_fee, priority_fee)

    return FeeOffer(max_fee_per_gas=max_fee, max_priority_fee_per_gas=priority_fee)


async def fetch_network_fee_data(client: JsonRpcClient) -> NetworkFeeData:
    """Read the node's fee suggestion.

    The max fee is derived the usual way, ``2 * baseFee + tip``. Any call
    that fails just leaves its field empty.
    """
    priority_fee: Optional[int] = None
    max_fee: Optional[int] = None

    try:
        priority_fee = await client.max_priority_fee()
    except (RpcError, ValueError, TypeError) as e:
        logger.warning(f"Priority fee unavailable, using fallback: {e}")

    try:
        block = await client.get_block("latest")
        base_fee = hex_to_int(block.get("baseFeePerGas")) if block else None
        if base_fee is not None:
            max_fee = base_fee * 2 + (priority_fee or 0)
    except (RpcError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Base fee unavailable, using fallback: {e}")

    return NetworkFeeData(max_fee_per_gas=max_fee, max_priority_fee_per_gas=priority_fee)


class FeePolicyCalculator:
    """Turns live network conditions into a fee offer."""

    def __init__(self, policy: Optional[FeePolicy] = None):
        self.policy = policy or FeePolicy()

    async def get_fee_offer(self, connection: Connection) -> FeeOffer:
        data = await fetch_network_fee_data(connection.client)
        offer = compute_fee_offer(data, self.policy)

        priority_gwei = Web3.from_wei(offer.max_priority_fee_per_gas, "gwei")
        max_gwei = Web3.from_wei(offer.max_fee_per_gas, "gwei")
        logger.info(f"[GAS] Priority: {priority_gwei} gwei, Max: {max_gwei} gwei")
        return offer
