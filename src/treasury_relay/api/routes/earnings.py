"""Earnings bookkeeping and informational endpoints (no chain writes)."""

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from treasury_relay.api.deps import get_treasury, parse_amount
from treasury_relay.service import TreasuryService

router = APIRouter()

Amount = Optional[Union[float, str]]

# Static fields kept for dashboard compatibility
PROJECTED_HOURLY = 15000
TOTAL_STRATEGIES = 450
ACTIVE_STRATEGIES = 360


class CreditBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    amount: Amount = None
    amount_usd: Amount = Field(default=None, alias="amountUSD")


class AllocationBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    amount_eth: Amount = Field(default=None, alias="amountETH")
    amount_usd: Amount = Field(default=None, alias="amountUSD")


@router.post("/credit-earnings")
async def credit_earnings(
    body: Optional[CreditBody] = None,
    treasury: TreasuryService = Depends(get_treasury),
):
    """Add to the in-memory earnings total."""
    body = body or CreditBody()
    amount = parse_amount(body.amount_usd or body.amount)
    treasury.credit_earnings(amount)
    return {
        "success": True,
        "credited": float(amount),
        "totalEarnings": f"{treasury.ledger.total_earnings:.2f}",
    }


@router.post("/send-to-backend")
@router.post("/fund-backend")
@router.post("/fund-from-earnings")
async def send_to_backend(
    body: Optional[AllocationBody] = None,
    treasury: TreasuryService = Depends(get_treasury),
):
    """Report the ETH allocation for the backend; nothing is sent."""
    body = body or AllocationBody()
    allocated = parse_amount(body.amount_eth) or treasury.to_eth(parse_amount(body.amount_usd))
    return {
        "success": True,
        "allocated": float(allocated),
        "to": treasury.settings.treasury_wallet,
    }


@router.get("/api/apex/strategies/live")
async def strategies_live(treasury: TreasuryService = Depends(get_treasury)):
    """Strategy summary for dashboard compatibility."""
    balance = await treasury.get_balance_or_zero()
    return {
        "totalPnL": float(treasury.ledger.total_earnings),
        "projectedHourly": PROJECTED_HOURLY,
        "totalStrategies": TOTAL_STRATEGIES,
        "activeStrategies": ACTIVE_STRATEGIES,
        "treasuryBalance": f"{balance:.6f}",
        "feeRecipient": treasury.settings.coinbase_wallet,
        "canTrade": balance >= treasury.settings.min_gas_eth,
    }
