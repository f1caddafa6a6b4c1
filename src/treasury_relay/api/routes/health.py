"""Status and health endpoints."""

from fastapi import APIRouter, Depends

from treasury_relay import __version__
from treasury_relay.api.deps import get_treasury
from treasury_relay.service import TreasuryService

router = APIRouter()


@router.get("/")
async def root(treasury: TreasuryService = Depends(get_treasury)):
    """Service banner."""
    settings = treasury.settings
    return {
        "name": "Treasury Relay API (HIGH GAS)",
        "version": __version__,
        "status": "online",
        "gasMode": (
            f"HIGH - {settings.max_fee_multiplier}x-{settings.priority_fee_multiplier}x "
            "multiplier for fast confirmations"
        ),
        "coinbaseWallet": settings.coinbase_wallet,
        "treasuryWallet": settings.treasury_wallet,
    }


@router.get("/status")
async def status(treasury: TreasuryService = Depends(get_treasury)):
    """Treasury status with balance and earnings."""
    balance = await treasury.get_balance_or_zero()
    connection = treasury.connection
    return {
        "status": "online",
        "gasMode": "HIGH",
        "treasuryBalance": f"{balance:.6f}",
        "canWithdraw": balance >= treasury.settings.min_status_balance_eth,
        "totalEarnings": f"{treasury.ledger.total_earnings:.2f}",
        "totalWithdrawn": f"{treasury.ledger.total_withdrawn:.2f}",
        "endpoint": connection.endpoint if connection else None,
    }


@router.get("/health")
async def health_check(treasury: TreasuryService = Depends(get_treasury)):
    """Basic health check endpoint."""
    balance = await treasury.get_balance_or_zero()
    return {"status": "healthy", "treasuryBalance": f"{balance:.6f}"}


@router.get("/health/detailed")
async def detailed_health(treasury: TreasuryService = Depends(get_treasury)):
    """Detailed health check with configuration info."""
    connection = treasury.connection
    return {
        "status": "healthy",
        "version": __version__,
        "connected": connection is not None,
        "endpoint": connection.endpoint if connection else None,
        "signer": connection.signer is not None if connection else False,
        "config": treasury.settings.get_safe_dict(),
    }


@router.get("/balance")
async def balance(treasury: TreasuryService = Depends(get_treasury)):
    """Treasury balance in ETH and USD."""
    amount = await treasury.get_balance_or_zero()
    return {
        "treasuryWallet": treasury.treasury_address,
        "balance": f"{amount:.6f}",
        "balanceUSD": f"{treasury.to_usd(amount):.2f}",
    }
