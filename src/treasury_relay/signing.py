"""Local signing for the treasury account.

The key comes from ``TREASURY_PRIVATE_KEY`` and lives only in memory.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from web3 import Web3

from treasury_relay.errors import SigningError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedTransfer:
    """A signed transaction ready for broadcast."""
    raw_tx: str    # 0x-prefixed RLP
    tx_hash: str   # 0x-prefixed hash


class TreasurySigner:
    """Signer backed by an ``eth_account`` local account."""

    def __init__(self, account):
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> "TreasurySigner":
        """Build a signer from a hex private key.

        Raises:
            SigningError: If the key cannot be parsed
        """
        try:
            account = Account.from_key(private_key.strip())
        except (ValueError, TypeError) as e:
            raise SigningError(f"Invalid treasury private key: {e}") from e
        return cls(account)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, tx: dict) -> SignedTransfer:
        """Sign a transaction dict.

        Raises:
            SigningError: If eth_account rejects the transaction
        """
        try:
            signed = self._account.sign_transaction(tx)
        except Exception as e:
            raise SigningError(f"Signing failed: {e}") from e

        # eth-account >= 0.13 uses raw_transaction, older versions rawTransaction
        raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction
        return SignedTransfer(raw_tx=Web3.to_hex(raw), tx_hash=Web3.to_hex(signed.hash))


def load_signer(private_key: Optional[str]) -> tuple[Optional[TreasurySigner], Optional[str]]:
    """Load the treasury signer if a key is configured.

    Returns:
        (signer, None) on success, (None, reason) when no usable key exists
    """
    if not private_key or not private_key.strip():
        return None, "TREASURY_PRIVATE_KEY not configured"

    try:
        signer = TreasurySigner.from_key(private_key)
    except SigningError as e:
        logger.error(f"Treasury signer unavailable: {e}")
        return None, str(e)

    logger.info(f"Wallet: {signer.address}")
    return signer, None
