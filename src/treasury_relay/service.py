"""Treasury service: owns the connection and wires the components together.

The connection (and the signer it carries) is created lazily by the first
operation that needs it, kept for the life of the process, and replaced only
by an explicit ``reconnect``.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from treasury_relay.balance import BalanceGuard
from treasury_relay.config import Settings, get_settings
from treasury_relay.errors import TreasuryError, ValidationError
from treasury_relay.fees import FeeOffer, FeePolicy, FeePolicyCalculator
from treasury_relay.ledger import Ledger
from treasury_relay.network.connection import Connection
from treasury_relay.network.selector import EndpointSelector
from treasury_relay.submitter import TransactionSubmitter, WithdrawalRequest, WithdrawalResult
from treasury_relay.utils.locks import SubmissionLock

logger = logging.getLogger(__name__)


class TreasuryService:
    """Entry point for every treasury operation."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        selector: Optional[EndpointSelector] = None,
        ledger: Optional[Ledger] = None,
    ):
        self.settings = settings or get_settings()
        self.selector = selector or EndpointSelector(
            self.settings.rpc_url_list,
            chain_id=self.settings.chain_id,
            probe_timeout=self.settings.rpc_probe_timeout,
            request_timeout=self.settings.rpc_request_timeout,
        )
        self.ledger = ledger or Ledger()
        self.balance_guard = BalanceGuard(reserve=self.settings.gas_reserve_eth)
        self.fee_calculator = FeePolicyCalculator(FeePolicy.from_settings(self.settings))
        self.submitter = TransactionSubmitter(
            balance_guard=self.balance_guard,
            fee_calculator=self.fee_calculator,
            ledger=self.ledger,
            eth_price=self.settings.eth_price,
            gas_limit=self.settings.transfer_gas_limit,
            poll_interval=self.settings.confirmation_poll_interval,
            confirmation_timeout=self.settings.confirmation_timeout,
            lock_timeout=self.settings.submission_lock_timeout,
        )
        self._connection: Optional[Connection] = None
        self._connect_lock = asyncio.Lock()

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def treasury_address(self) -> str:
        """Signer address when connected with a key, else the configured wallet."""
        if self._connection and self._connection.signer:
            return self._connection.signer.address
        return self.settings.treasury_wallet

    async def ensure_connection(self) -> Connection:
        """Return the committed connection, probing endpoints if there is none.

        Raises:
            ConnectivityError: If no endpoint answers
        """
        async with self._connect_lock:
            if self._connection is None:
                self._connection = await Connection.establish(
                    self.selector, self.settings.treasury_private_key
                )
            return self._connection

    async def reconnect(self) -> Connection:
        """Drop the current connection and select an endpoint again.

        A withdrawal in flight on the old connection finishes before its
        client is closed.

        Raises:
            SubmissionBusyError: If the in-flight withdrawal outlasts the lock timeout
            ConnectivityError: If no endpoint answers
        """
        async with self._connect_lock:
            old = self._connection
            if old is not None:
                await self._close_when_idle(old)
                self._connection = None
            logger.info("Re-initializing network connection")
            self._connection = await Connection.establish(
                self.selector, self.settings.treasury_private_key
            )
            return self._connection

    async def _close_when_idle(self, connection: Connection) -> None:
        if connection.signer is None:
            await connection.close()
            return

        async with SubmissionLock(
            connection.signer.address,
            timeout=self.settings.submission_lock_timeout,
            operation="reconnect",
        ):
            await connection.close()

    async def close(self) -> None:
        async with self._connect_lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None

    async def get_balance(self) -> Decimal:
        """Treasury balance in ETH.

        Raises:
            ConnectivityError: If no endpoint is reachable
        """
        connection = await self.ensure_connection()
        return await self.balance_guard.get_balance(connection, self.treasury_address)

    async def get_balance_or_zero(self) -> Decimal:
        """Treasury balance for read-only status pages; zero when unavailable."""
        try:
            return await self.get_balance()
        except TreasuryError as e:
            logger.warning(f"Treasury balance unavailable: {e}")
            return Decimal("0")

    async def get_fee_offer(self) -> FeeOffer:
        connection = await self.ensure_connection()
        return await self.fee_calculator.get_fee_offer(connection)

    async def withdraw(self, amount: Decimal, destination: Optional[str] = None) -> WithdrawalResult:
        """Send ``amount`` ETH to ``destination`` (default: the Coinbase wallet).

        Raises:
            ValidationError: If the amount is not positive, before any network call
        """
        if amount <= 0:
            raise ValidationError("Invalid amount")

        connection = await self.ensure_connection()
        request = WithdrawalRequest(
            destination=destination or self.settings.coinbase_wallet,
            amount=amount,
        )
        return await self.submitter.submit(connection, request)

    async def sweep(self, amount: Decimal = Decimal("0")) -> WithdrawalResult:
        """Send to the Coinbase wallet; a zero amount sends the maximum withdrawable."""
        connection = await self.ensure_connection()
        request = WithdrawalRequest(
            destination=self.settings.coinbase_wallet,
            amount=amount,
            sweep=True,
        )
        return await self.submitter.submit(connection, request)

    def credit_earnings(self, amount_usd: Decimal) -> Decimal:
        return self.ledger.credit_earnings(amount_usd)

    def to_eth(self, amount_usd: Decimal) -> Decimal:
        return amount_usd / self.settings.eth_price

    def to_usd(self, amount_eth: Decimal) -> Decimal:
        return amount_eth * self.settings.eth_price

    async def log_startup_banner(self) -> None:
        """Connect and log the treasury summary."""
        balance = await self.get_balance_or_zero()
        settings = self.settings
        logger.info("=" * 64)
        logger.info("TREASURY RELAY - HIGH GAS MODE")
        logger.info("=" * 64)
        logger.info(
            f"Gas: {settings.max_fee_multiplier}x-{settings.priority_fee_multiplier}x "
            "multiplier for fast confirmations"
        )
        logger.info(f"Min Priority Fee: {settings.min_priority_fee_gwei} gwei")
        logger.info(f"Min Max Fee: {settings.min_max_fee_gwei} gwei")
        logger.info(f"Treasury: {self.treasury_address}")
        logger.info(f"Balance: {balance:.6f} ETH")
        logger.info("=" * 64)
