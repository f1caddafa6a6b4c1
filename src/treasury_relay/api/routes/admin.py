"""Admin endpoints."""

import logging

from fastapi import APIRouter, Depends

from treasury_relay.api.deps import get_treasury, require_admin_token
from treasury_relay.service import TreasuryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")


@router.post("/reconnect")
async def reconnect(
    treasury: TreasuryService = Depends(get_treasury),
    _: bool = Depends(require_admin_token),
):
    """Re-run endpoint selection and rebuild the signer."""
    connection = await treasury.reconnect()
    return {
        "success": True,
        "endpoint": connection.endpoint,
        "chainId": connection.chain_id,
        "blockNumber": connection.block_number,
        "signer": connection.signer.address if connection.signer else None,
    }
