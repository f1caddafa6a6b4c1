"""Balance guard for treasury withdrawals.

A withdrawal must leave ``reserve`` ETH behind to pay for high-gas
transactions. Rejections carry the balance and the computed maximum so the
caller can retry with a valid amount.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from web3 import Web3

from treasury_relay.errors import ConnectivityError, RpcError, ValidationError
from treasury_relay.network.connection import Connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceCheck:
    """An accepted withdrawal amount and the balance it was checked against."""
    amount: Decimal
    treasury_balance: Decimal
    max_withdrawable: Decimal


class BalanceGuard:
    """Enforce ``0 < amount <= balance - reserve``."""

    def __init__(self, reserve: Decimal = Decimal("0.01")):
        self.reserve = reserve

    async def get_balance(self, connection: Connection, address: Optional[str] = None) -> Decimal:
        """Get the treasury balance in ETH.

        Args:
            connection: Live connection
            address: Account to query, defaults to the signer address

        Raises:
            ConnectivityError: If the node cannot answer
            SigningError: If no address is given and there is no signer
        """
        if address is None:
            address = connection.require_signer().address

        try:
            balance_wei = await connection.client.get_balance(address)
        except RpcError as e:
            raise ConnectivityError(f"Balance lookup failed: {e}") from e

        return Web3.from_wei(balance_wei, "ether")

    def max_withdrawable(self, balance: Decimal) -> Decimal:
        return balance - self.reserve

    def check(self, amount: Decimal, balance: Decimal, sweep: bool = False) -> BalanceCheck:
        """Validate an amount against a known balance.

        With ``sweep`` set, a zero amount means "everything above the
        reserve".

        Raises:
            ValidationError: If the amount is not withdrawable
        """
        max_send = self.max_withdrawable(balance)

        if sweep and amount <= 0:
            amount = max_send

        if amount <= 0 or amount > max_send:
            if sweep:
                message = "Insufficient treasury balance"
            elif amount <= 0:
                message = "Invalid amount"
            else:
                message = f"Insufficient balance (need {self.reserve} ETH for high gas)"
            logger.info(
                f"Rejected withdrawal of {amount} ETH: balance={balance}, max={max_send}"
            )
            raise ValidationError(
                message, treasury_balance=balance, max_withdrawable=max_send
            )

        return BalanceCheck(amount=amount, treasury_balance=balance, max_withdrawable=max_send)

    async def validate(
        self, connection: Connection, amount: Decimal, sweep: bool = False
    ) -> BalanceCheck:
        """Fetch the signer balance and validate the amount against it."""
        balance = await self.get_balance(connection)
        return self.check(amount, balance, sweep=sweep)
