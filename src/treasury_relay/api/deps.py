"""Shared request dependencies and body parsing."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import Header, HTTPException, Request

from treasury_relay.service import TreasuryService

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def get_treasury(request: Request) -> TreasuryService:
    return request.app.state.treasury


async def require_admin_token(
    request: Request, x_admin_token: str = Header(None)
) -> bool:
    """Verify admin token."""
    settings = request.app.state.treasury.settings
    if settings.admin_token and x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return True


def parse_amount(value: Any) -> Decimal:
    """Parse a loosely typed amount the way JavaScript's parseFloat does.

    Leading numeric text is used, anything else counts as zero.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")

    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return Decimal("0")

    try:
        parsed = Decimal(match.group(0).strip())
    except InvalidOperation:
        return Decimal("0")

    return parsed if parsed.is_finite() else Decimal("0")
