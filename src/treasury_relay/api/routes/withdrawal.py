"""Withdrawal endpoints.

Several aliases exist for clients built against older route names; they all
share the same handlers.
"""

import logging
from decimal import Decimal
from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from treasury_relay.api.deps import get_treasury, parse_amount
from treasury_relay.service import TreasuryService
from treasury_relay.submitter import WithdrawalResult

logger = logging.getLogger(__name__)

router = APIRouter()

Amount = Optional[Union[float, str]]


class WithdrawBody(BaseModel):
    """Withdrawal request body.

    The ETH amount comes from ``amountETH``, else ``amount``, else
    ``amountUSD`` converted at the fixed rate.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    amount_eth: Amount = Field(default=None, alias="amountETH")
    amount: Amount = None
    amount_usd: Amount = Field(default=None, alias="amountUSD")
    to: Optional[str] = None


def resolve_eth_amount(body: WithdrawBody, treasury: TreasuryService) -> Decimal:
    eth_amount = parse_amount(body.amount_eth) or parse_amount(body.amount)
    if not eth_amount and body.amount_usd:
        eth_amount = treasury.to_eth(parse_amount(body.amount_usd))
    return eth_amount


def result_payload(result: WithdrawalResult, treasury: TreasuryService) -> dict:
    receipt = result.receipt
    return {
        "success": True,
        "txHash": receipt.tx_hash,
        "amount": float(result.amount),
        "amountUSD": f"{result.amount_usd:.2f}",
        "to": result.destination,
        "from": result.source,
        "blockNumber": receipt.block_number,
        "gasUsed": str(receipt.gas_used),
        "etherscanUrl": f"{treasury.settings.explorer_tx_url}{receipt.tx_hash}",
    }


@router.post("/withdraw")
@router.post("/send-to-coinbase")
@router.post("/send-eth")
@router.post("/transfer")
async def withdraw(
    body: Optional[WithdrawBody] = None,
    treasury: TreasuryService = Depends(get_treasury),
):
    """Send ETH to ``to`` (default: the Coinbase wallet)."""
    body = body or WithdrawBody()
    amount = resolve_eth_amount(body, treasury)
    result = await treasury.withdraw(amount, destination=body.to)
    return result_payload(result, treasury)


@router.post("/coinbase-withdraw")
async def coinbase_withdraw(
    body: Optional[WithdrawBody] = None,
    treasury: TreasuryService = Depends(get_treasury),
):
    """Same as /withdraw, always to the Coinbase wallet."""
    body = body or WithdrawBody()
    amount = resolve_eth_amount(body, treasury)
    result = await treasury.withdraw(amount, destination=treasury.settings.coinbase_wallet)
    return result_payload(result, treasury)


@router.post("/backend-to-coinbase")
@router.post("/transfer-to-coinbase")
@router.post("/treasury-to-coinbase")
async def backend_to_coinbase(
    body: Optional[WithdrawBody] = None,
    treasury: TreasuryService = Depends(get_treasury),
):
    """Move treasury funds to the Coinbase wallet; no amount sweeps the maximum."""
    body = body or WithdrawBody()
    amount = parse_amount(body.amount_eth) or parse_amount(body.amount)
    result = await treasury.sweep(amount)
    logger.info(
        f"[OK] Backend -> Coinbase: {result.amount} ETH | TX: {result.receipt.tx_hash}"
    )
    return result_payload(result, treasury)
