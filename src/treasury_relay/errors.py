"""Error taxonomy for treasury operations.

Every error carries the HTTP status it maps to and renders its own JSON
payload, so the API layer can pass diagnostics through verbatim.
"""

from decimal import Decimal
from typing import Optional


class TreasuryError(Exception):
    """Base class for all treasury failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"error": self.message}


class ConnectivityError(TreasuryError):
    """Raised when no RPC endpoint is reachable."""


class ValidationError(TreasuryError):
    """Raised when a withdrawal amount or destination is not acceptable.

    When the rejection came from the balance check, the current balance and
    the computed maximum are attached so the caller can retry.
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        treasury_balance: Optional[Decimal] = None,
        max_withdrawable: Optional[Decimal] = None,
    ):
        super().__init__(message)
        self.treasury_balance = treasury_balance
        self.max_withdrawable = max_withdrawable

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.treasury_balance is not None:
            payload["treasuryBalance"] = f"{self.treasury_balance:.6f}"
        if self.max_withdrawable is not None:
            payload["maxWithdrawable"] = f"{self.max_withdrawable:.6f}"
        return payload


class SigningError(TreasuryError):
    """Raised when no key is configured or signing fails."""


class BroadcastError(TreasuryError):
    """Raised when the network rejects or reverts a transaction."""


class ConfirmationTimeout(TreasuryError):
    """Raised when a broadcast transaction is not included in time."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class SubmissionBusyError(TreasuryError):
    """Raised when the signer stays busy longer than the queue timeout."""

    status_code = 409


class RpcError(Exception):
    """Raised by the JSON-RPC client for node-side or transport failures."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)
