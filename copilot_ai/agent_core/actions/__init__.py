"""Pending action ledger for confirm-before-execute write actions."""

from .ledger import DEFAULT_ACTION_TTL_SECONDS, PendingActionLedger

__all__ = ["DEFAULT_ACTION_TTL_SECONDS", "PendingActionLedger"]
