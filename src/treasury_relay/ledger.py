"""In-memory earnings and withdrawal totals.

Both totals are in USD, only ever grow, and reset on restart.
"""

import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


class Ledger:
    """Process-local running totals."""

    def __init__(self):
        self.total_earnings = Decimal("0")
        self.total_withdrawn = Decimal("0")

    def credit_earnings(self, amount_usd: Decimal) -> Decimal:
        """Add to the earnings total.

        Non-positive amounts are ignored.

        Returns:
            The amount actually credited
        """
        if amount_usd <= 0:
            return Decimal("0")
        self.total_earnings += amount_usd
        logger.info(f"Credited ${amount_usd} earnings (total ${self.total_earnings:.2f})")
        return amount_usd

    def record_withdrawal(self, amount_usd: Decimal) -> None:
        """Add a confirmed withdrawal to the withdrawn total."""
        if amount_usd < 0:
            raise ValueError("Withdrawal amount must be non-negative")
        self.total_withdrawn += amount_usd
        logger.info(f"Recorded ${amount_usd:.2f} withdrawal (total ${self.total_withdrawn:.2f})")
