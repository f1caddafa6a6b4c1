"""Transaction submission: validate, price, sign, broadcast, confirm.

Submission flow:
1. Acquire the signer lock (one in-flight transaction per signer)
2. Validate the amount against the live balance and reserve
3. Compute the high-gas fee offer
4. Build, sign and broadcast an EIP-1559 transfer
5. Poll for the receipt
6. Record the withdrawal in the ledger, only after inclusion
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Optional

from web3 import Web3

from treasury_relay.balance import BalanceGuard
from treasury_relay.errors import (
    BroadcastError,
    ConfirmationTimeout,
    RpcError,
    TreasuryError,
    ValidationError,
)
from treasury_relay.fees import FeeOffer, FeePolicyCalculator
from treasury_relay.ledger import Ledger
from treasury_relay.network.connection import Connection
from treasury_relay.rpc.client import JsonRpcClient, hex_to_int
from treasury_relay.signing import TreasurySigner
from treasury_relay.utils.locks import SubmissionLock

logger = logging.getLogger(__name__)

WEI_PRECISION = Decimal("1e-18")


class SubmissionState(str, Enum):
    """Internal lifecycle of one submission (logged, never exposed)."""
    IDLE = "idle"
    VALIDATING = "validating"
    FEE_COMPUTING = "fee_computing"
    BROADCASTING = "broadcasting"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class WithdrawalRequest:
    """Request to move ETH out of the treasury.

    A sweep request with a zero amount withdraws everything above the
    reserve.
    """
    destination: str
    amount: Decimal
    sweep: bool = False


@dataclass(frozen=True)
class TransactionReceipt:
    """Inclusion data reported by the network."""
    tx_hash: str
    block_number: int
    gas_used: int
    success: bool


@dataclass(frozen=True)
class WithdrawalResult:
    """Confirmed withdrawal."""
    receipt: TransactionReceipt
    amount: Decimal
    amount_usd: Decimal
    destination: str
    source: str
    fee_offer: FeeOffer


def validate_destination(address: str) -> str:
    """Return the checksummed destination or reject it.

    Raises:
        ValidationError: If the address is not a valid hex address
    """
    if not address or not Web3.is_address(address):
        raise ValidationError("Invalid destination address")
    return Web3.to_checksum_address(address)


class TransactionSubmitter:
    """Runs one withdrawal from validation to confirmed receipt.

    There are no retries: a failed submission is reported upward and the
    caller starts a brand-new attempt (fresh nonce, fresh fee quote).
    """

    def __init__(
        self,
        balance_guard: BalanceGuard,
        fee_calculator: FeePolicyCalculator,
        ledger: Ledger,
        eth_price: Decimal = Decimal("3450"),
        gas_limit: int = 21000,
        poll_interval: float = 2.0,
        confirmation_timeout: Optional[float] = 600.0,
        lock_timeout: Optional[float] = 30.0,
    ):
        self.balance_guard = balance_guard
        self.fee_calculator = fee_calculator
        self.ledger = ledger
        self.eth_price = eth_price
        self.gas_limit = gas_limit
        self.poll_interval = poll_interval
        self.confirmation_timeout = confirmation_timeout
        self.lock_timeout = lock_timeout

    async def submit(self, connection: Connection, request: WithdrawalRequest) -> WithdrawalResult:
        """Execute a withdrawal and wait for inclusion.

        Raises:
            ValidationError: Bad destination or amount (nothing broadcast)
            SigningError: No signer or signing failure
            SubmissionBusyError: Signer busy past the queue timeout
            BroadcastError: Node rejected or reverted the transaction
            ConfirmationTimeout: No receipt within the confirmation timeout
            ConnectivityError: Balance lookup failed
        """
        destination = validate_destination(request.destination)
        signer = connection.require_signer()

        async with SubmissionLock(
            signer.address,
            timeout=self.lock_timeout,
            operation=f"withdraw to {destination}",
        ):
            state = SubmissionState.VALIDATING
            try:
                check = await self.balance_guard.validate(
                    connection, request.amount, sweep=request.sweep
                )
                logger.info(
                    f"[WITHDRAW] Sending {check.amount} ETH to {destination} "
                    f"(max withdrawable {check.max_withdrawable})"
                )

                state = SubmissionState.FEE_COMPUTING
                offer = await self.fee_calculator.get_fee_offer(connection)

                state = SubmissionState.BROADCASTING
                tx_hash = await self._broadcast(connection, signer, destination, check.amount, offer)
                logger.info(f"[TX] Hash: {tx_hash} - Waiting for confirmation...")

                state = SubmissionState.CONFIRMING
                receipt = await self.wait_for_receipt(connection.client, tx_hash)
            except TreasuryError as e:
                logger.error(f"[ERROR] Withdrawal failed during {state.value}: {e}")
                raise

            amount_usd = check.amount * self.eth_price
            self.ledger.record_withdrawal(amount_usd)
            logger.info(f"[OK] Confirmed in block {receipt.block_number}")

            return WithdrawalResult(
                receipt=receipt,
                amount=check.amount,
                amount_usd=amount_usd,
                destination=destination,
                source=signer.address,
                fee_offer=offer,
            )

    def build_transfer(
        self,
        chain_id: int,
        nonce: int,
        destination: str,
        amount: Decimal,
        offer: FeeOffer,
    ) -> dict:
        """Build an unsigned EIP-1559 native transfer."""
        value = Web3.to_wei(amount.quantize(WEI_PRECISION, rounding=ROUND_DOWN), "ether")
        return {
            "type": 2,
            "chainId": chain_id,
            "nonce": nonce,
            "to": destination,
            "value": value,
            "gas": self.gas_limit,
            **offer.to_tx_fields(),
        }

    async def _broadcast(
        self,
        connection: Connection,
        signer: TreasurySigner,
        destination: str,
        amount: Decimal,
        offer: FeeOffer,
    ) -> str:
        try:
            nonce = await connection.client.get_transaction_count(signer.address, "pending")
        except RpcError as e:
            raise BroadcastError(f"Nonce lookup failed: {e}") from e

        tx = self.build_transfer(connection.chain_id, nonce, destination, amount, offer)
        signed = signer.sign_transaction(tx)

        try:
            tx_hash = await connection.client.send_raw_transaction(signed.raw_tx)
        except RpcError as e:
            raise BroadcastError(f"Broadcast rejected: {e}") from e

        return tx_hash or signed.tx_hash

    async def wait_for_receipt(self, client: JsonRpcClient, tx_hash: str) -> TransactionReceipt:
        """Poll until the transaction is included.

        Node errors while polling are logged and polling continues; only the
        confirmation timeout ends the wait.

        Raises:
            ConfirmationTimeout: If no receipt arrives in time
            BroadcastError: If the transaction was included but reverted
        """
        loop = asyncio.get_running_loop()
        deadline = None
        if self.confirmation_timeout is not None:
            deadline = loop.time() + self.confirmation_timeout

        while True:
            try:
                raw = await client.get_transaction_receipt(tx_hash)
            except RpcError as e:
                logger.warning(f"Receipt lookup for {tx_hash} failed: {e}")
                raw = None

            if raw is not None:
                break

            if deadline is not None and loop.time() >= deadline:
                raise ConfirmationTimeout(
                    f"Transaction {tx_hash} not confirmed after {self.confirmation_timeout}s",
                    tx_hash=tx_hash,
                )

            await asyncio.sleep(self.poll_interval)

        receipt = TransactionReceipt(
            tx_hash=raw.get("transactionHash") or tx_hash,
            block_number=hex_to_int(raw.get("blockNumber")),
            gas_used=hex_to_int(raw.get("gasUsed")) or 0,
            success=hex_to_int(raw.get("status")) == 1,
        )

        if not receipt.success:
            raise BroadcastError(
                f"Transaction {tx_hash} reverted in block {receipt.block_number}"
            )

        return receipt
