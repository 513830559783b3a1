from __future__ import annotations

"""In-memory ledger of proposed write actions awaiting human confirmation.

Lifecycle
---------

A proposal enters the ledger as ``proposed`` when an agent run returns it.
From there exactly one transition happens:

- ``claim`` + ``mark_executed``: the owner confirmed it and the tool ran,
- ``cancel``: the owner dismissed it,
- TTL elapsed: the record is flipped to ``expired`` the next time it is read.

``claim`` reserves a proposal for execution and succeeds at most once per
record; ``release`` hands the reservation back when the tool run fails so the
owner can retry. Transitions are serialized by a ``threading.Lock`` so the
guarantee holds whether callers share an event loop or not.
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from ..errors import (
    PendingActionExpiredError,
    PendingActionMismatchError,
    PendingActionNotFoundError,
    PendingActionStateError,
)
from ..redaction import summarize_payload
from ..schemas.domain import PendingActionRecord, PendingActionStatus, ProposedAction
from ...core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ACTION_TTL_SECONDS = 600.0
CLAIMED_STATUS = "claimed"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PendingActionLedger:
    """Tracks proposed actions by id with owner binding and expiry.

    Args:
        ttl_seconds: Lifetime of a proposal before it can no longer be claimed.
        clock: Returns the current timezone-aware time; injectable for tests.
    """

    def __init__(self, *, ttl_seconds: float = DEFAULT_ACTION_TTL_SECONDS, clock: Optional[Clock] = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock: Clock = clock or _utc_now
        self._records: Dict[str, PendingActionRecord] = {}
        self._claimed: Set[str] = set()
        self._lock = threading.Lock()

    def register_many(
        self,
        proposals: Optional[Sequence[ProposedAction]],
        *,
        agent_id: str,
        user_id: str,
        tenant_id: str,
        trace_id: Optional[str] = None,
    ) -> List[ProposedAction]:
        """Record proposals and return them carrying their ledger-assigned ids.

        Any id the model produced is replaced, so a client can only ever
        confirm ids that this ledger issued.
        """
        if not proposals:
            return []
        now = self._clock()
        registered: List[ProposedAction] = []
        with self._lock:
            for proposal in proposals:
                action_id = str(uuid.uuid4())
                self._records[action_id] = PendingActionRecord(
                    action_id=action_id,
                    agent_id=agent_id,
                    tool_id=proposal.tool_id,
                    args=dict(proposal.args),
                    user_id=user_id,
                    tenant_id=tenant_id,
                    trace_id=trace_id,
                    created_at=now,
                    expires_at=now + self._ttl,
                )
                registered.append(proposal.model_copy(update={"action_id": action_id}))
        if registered:
            logger.info(f"Registered {len(registered)} pending action(s) for agent {agent_id} (tenant {tenant_id})")
        return registered

    def claim(self, action_id: str, *, user_id: str, tenant_id: str) -> PendingActionRecord:
        """Take ownership of a proposed action so it can be executed.

        Args:
            action_id: Id returned by ``register_many``.
            user_id: Caller's user id; must match the proposer's.
            tenant_id: Caller's tenant id; must match the proposer's.

        Returns:
            A snapshot of the claimed record.

        Raises:
            PendingActionNotFoundError: No record has this id.
            PendingActionExpiredError: The TTL has elapsed.
            PendingActionStateError: The record is no longer ``proposed`` or is
                already claimed.
            PendingActionMismatchError: The caller is not the proposer.
        """
        with self._lock:
            record = self._records.get(action_id)
            if record is None:
                raise PendingActionNotFoundError(action_id)
            if self._is_past_ttl(record):
                self._expire(record)
                raise PendingActionExpiredError(action_id)
            self._ensure_open(record)
            if record.user_id != user_id or record.tenant_id != tenant_id:
                logger.warning(f"Rejected claim of action {action_id} by user {user_id} (tenant {tenant_id})")
                raise PendingActionMismatchError(action_id)
            self._claimed.add(action_id)
            return record.model_copy()

    def release(self, action_id: str) -> None:
        """Drop the claim on ``action_id`` without changing its status."""
        with self._lock:
            self._claimed.discard(action_id)

    def mark_executed(self, action_id: str, result: Any = None) -> PendingActionRecord:
        """Stamp the execution time and a redacted result summary on a claimed record."""
        with self._lock:
            record = self._records.get(action_id)
            if record is None:
                raise PendingActionNotFoundError(action_id)
            self._claimed.discard(action_id)
            record.status = PendingActionStatus.executed
            record.executed_at = self._clock()
            record.result_summary = summarize_payload(result)
            return record.model_copy()

    def cancel(self, action_id: str, *, user_id: str, tenant_id: str) -> PendingActionRecord:
        with self._lock:
            record = self._records.get(action_id)
            if record is None:
                raise PendingActionNotFoundError(action_id)
            if record.user_id != user_id or record.tenant_id != tenant_id:
                raise PendingActionMismatchError(action_id)
            if self._is_past_ttl(record):
                self._expire(record)
            self._ensure_open(record)
            record.status = PendingActionStatus.cancelled
            return record.model_copy()

    def get(self, action_id: str) -> Optional[PendingActionRecord]:
        """Return a snapshot of the record, or ``None`` when unknown or past its TTL."""
        with self._lock:
            record = self._records.get(action_id)
            if record is None:
                return None
            if self._is_past_ttl(record):
                self._expire(record)
                return None
            return record.model_copy()

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._claimed.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _ensure_open(self, record: PendingActionRecord) -> None:
        if record.status is not PendingActionStatus.proposed:
            raise PendingActionStateError(record.action_id, record.status.value)
        if record.action_id in self._claimed:
            raise PendingActionStateError(record.action_id, CLAIMED_STATUS)

    def _is_past_ttl(self, record: PendingActionRecord) -> bool:
        return self._clock() >= record.expires_at

    @staticmethod
    def _expire(record: PendingActionRecord) -> None:
        if record.status is PendingActionStatus.proposed:
            record.status = PendingActionStatus.expired
