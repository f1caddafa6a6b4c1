"""Single-flight control for the treasury signer.

Every broadcast from one account must reach a terminal state before the
next one starts, otherwise concurrent requests race for the same nonce.
"""

import asyncio
import logging
from typing import Optional

from treasury_relay.errors import SubmissionBusyError

logger = logging.getLogger(__name__)

# Global lock registry: signer address -> asyncio.Lock
_signer_locks: dict[str, asyncio.Lock] = {}


def get_signer_lock(address: str) -> asyncio.Lock:
    """Get or create the lock for a signer address.

    Args:
        address: Signer address (case-insensitive)

    Returns:
        asyncio.Lock for the signer
    """
    key = address.lower()
    if key not in _signer_locks:
        _signer_locks[key] = asyncio.Lock()
    return _signer_locks[key]


class SubmissionLock:
    """Context manager giving one submission exclusive use of a signer.

    Waiters queue until the holder finishes. If ``timeout`` expires first
    the waiter gives up with SubmissionBusyError.

    Example:
        async with SubmissionLock(signer.address, operation="withdraw"):
            # validate, sign, broadcast, confirm
            ...
    """

    def __init__(
        self,
        address: str,
        timeout: Optional[float] = 30.0,
        operation: str = "submission",
    ):
        """Initialize the lock.

        Args:
            address: Signer address
            timeout: Maximum time to wait for the signer (None = wait forever)
            operation: Description of the operation for logging
        """
        self.address = address
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "SubmissionLock":
        """Acquire the lock."""
        self._lock = get_signer_lock(self.address)

        if self._lock.locked():
            logger.info(f"Signer {self.address} busy, queueing {self.operation}")

        try:
            if self.timeout is not None:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
            self._acquired = True
        except asyncio.TimeoutError:
            logger.warning(
                f"Signer {self.address} still busy after {self.timeout}s: {self.operation}"
            )
            raise SubmissionBusyError(
                "Treasury signer is busy with another withdrawal, retry later"
            )

        logger.debug(f"Lock acquired for signer {self.address}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release the lock."""
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for signer {self.address}: {self.operation}")
        return False


def clear_signer_locks() -> None:
    """Clear all signer locks (useful for testing)."""
    _signer_locks.clear()
