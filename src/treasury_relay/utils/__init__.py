"""Utility modules for treasury-relay."""

from treasury_relay.utils.locks import SubmissionLock, get_signer_lock

__all__ = ["SubmissionLock", "get_signer_lock"]
