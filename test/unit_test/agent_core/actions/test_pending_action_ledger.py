from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from copilot_ai.agent_core.actions.ledger import PendingActionLedger
from copilot_ai.agent_core.errors import (
    PendingActionExpiredError,
    PendingActionMismatchError,
    PendingActionNotFoundError,
    PendingActionStateError,
)
from copilot_ai.agent_core.schemas.domain import PendingActionStatus, ProposedAction, RiskLevel

OWNER = {"user_id": "dev-user", "tenant_id": "dev-tenant"}


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger(clock: FakeClock) -> PendingActionLedger:
    return PendingActionLedger(ttl_seconds=60, clock=clock)


def _proposal(action_id=None) -> ProposedAction:
    return ProposedAction(
        action_id=action_id,
        tool_id="create-ticket",
        args={"title": "VPN down", "description": "drops", "priority": "high"},
        title="Create ticket",
        risk=RiskLevel.medium,
        preview="Creates a ticket",
    )


def _register(ledger: PendingActionLedger, count: int = 1) -> List[str]:
    registered = ledger.register_many(
        [_proposal("model-chosen-id") for _ in range(count)], agent_id="ticket-handler", trace_id="trace-9", **OWNER
    )
    return [p.action_id for p in registered]


def test_register_assigns_fresh_ids_and_records_owner(ledger: PendingActionLedger, clock: FakeClock) -> None:
    first, second = _register(ledger, 2)

    assert first != second
    assert "model-chosen-id" not in (first, second)
    record = ledger.get(first)
    assert record.status is PendingActionStatus.proposed
    assert (record.agent_id, record.tool_id, record.user_id, record.tenant_id, record.trace_id) == (
        "ticket-handler",
        "create-ticket",
        "dev-user",
        "dev-tenant",
        "trace-9",
    )
    assert record.args["priority"] == "high"
    assert record.expires_at == clock.now + timedelta(seconds=60)
    assert len(ledger) == 2


def test_register_nothing_returns_empty(ledger: PendingActionLedger) -> None:
    assert ledger.register_many([], agent_id="a", **OWNER) == []
    assert ledger.register_many(None, agent_id="a", **OWNER) == []
    assert len(ledger) == 0


def test_claim_then_mark_executed(ledger: PendingActionLedger, clock: FakeClock) -> None:
    (action_id,) = _register(ledger)

    claimed = ledger.claim(action_id, **OWNER)
    clock.advance(5)
    executed = ledger.mark_executed(action_id, {"ticketId": "T-1", "apiToken": "s3cret"})

    assert claimed.status is PendingActionStatus.proposed
    assert executed.status is PendingActionStatus.executed
    assert executed.executed_at == clock.now
    assert "T-1" in executed.result_summary
    assert "s3cret" not in executed.result_summary


def test_claim_succeeds_only_once(ledger: PendingActionLedger) -> None:
    (action_id,) = _register(ledger)
    ledger.claim(action_id, **OWNER)

    with pytest.raises(PendingActionStateError) as exc_info:
        ledger.claim(action_id, **OWNER)
    assert exc_info.value.details == {"status": "claimed"}


def test_executed_action_cannot_be_claimed_again(ledger: PendingActionLedger) -> None:
    (action_id,) = _register(ledger)
    ledger.claim(action_id, **OWNER)
    ledger.mark_executed(action_id)

    with pytest.raises(PendingActionStateError) as exc_info:
        ledger.claim(action_id, **OWNER)
    assert exc_info.value.status == "executed"
    assert exc_info.value.status_code == 409


def test_released_claim_can_be_retried(ledger: PendingActionLedger) -> None:
    (action_id,) = _register(ledger)
    ledger.claim(action_id, **OWNER)
    ledger.release(action_id)

    assert ledger.claim(action_id, **OWNER).action_id == action_id


def test_unknown_action_is_not_found(ledger: PendingActionLedger) -> None:
    with pytest.raises(PendingActionNotFoundError):
        ledger.claim("missing", **OWNER)
    with pytest.raises(PendingActionNotFoundError):
        ledger.cancel("missing", **OWNER)
    with pytest.raises(PendingActionNotFoundError):
        ledger.mark_executed("missing")
    assert ledger.get("missing") is None


@pytest.mark.parametrize("caller", [{"user_id": "mallory", "tenant_id": "dev-tenant"}, {"user_id": "dev-user", "tenant_id": "other"}])
def test_other_user_or_tenant_cannot_claim(ledger: PendingActionLedger, caller) -> None:
    (action_id,) = _register(ledger)

    with pytest.raises(PendingActionMismatchError) as exc_info:
        ledger.claim(action_id, **caller)
    assert exc_info.value.status_code == 403
    assert ledger.claim(action_id, **OWNER).action_id == action_id


def test_expired_action_cannot_be_claimed(ledger: PendingActionLedger, clock: FakeClock) -> None:
    (action_id,) = _register(ledger)
    clock.advance(60)

    with pytest.raises(PendingActionExpiredError) as exc_info:
        ledger.claim(action_id, **OWNER)
    assert exc_info.value.status_code == 410
    assert ledger.get(action_id) is None

    clock.advance(-60)
    assert ledger.get(action_id).status is PendingActionStatus.expired
    with pytest.raises(PendingActionStateError) as state_info:
        ledger.cancel(action_id, **OWNER)
    assert state_info.value.status == "expired"


def test_action_is_claimable_just_before_expiry(ledger: PendingActionLedger, clock: FakeClock) -> None:
    (action_id,) = _register(ledger)
    clock.advance(59.9)

    assert ledger.claim(action_id, **OWNER).action_id == action_id


def test_cancel_marks_action_cancelled(ledger: PendingActionLedger) -> None:
    (action_id,) = _register(ledger)

    record = ledger.cancel(action_id, **OWNER)

    assert record.status is PendingActionStatus.cancelled
    with pytest.raises(PendingActionStateError):
        ledger.claim(action_id, **OWNER)


def test_cancel_refuses_terminal_or_claimed_actions(ledger: PendingActionLedger, clock: FakeClock) -> None:
    executed, claimed, expired = _register(ledger, 3)
    ledger.claim(executed, **OWNER)
    ledger.mark_executed(executed)
    ledger.claim(claimed, **OWNER)

    with pytest.raises(PendingActionStateError):
        ledger.cancel(executed, **OWNER)
    with pytest.raises(PendingActionStateError) as exc_info:
        ledger.cancel(claimed, **OWNER)
    assert exc_info.value.status == "claimed"

    clock.advance(61)
    with pytest.raises(PendingActionStateError) as exc_info:
        ledger.cancel(expired, **OWNER)
    assert exc_info.value.status == "expired"


def test_cancel_by_other_user_is_rejected(ledger: PendingActionLedger) -> None:
    (action_id,) = _register(ledger)

    with pytest.raises(PendingActionMismatchError):
        ledger.cancel(action_id, user_id="mallory", tenant_id="dev-tenant")


def test_clear_forgets_everything(ledger: PendingActionLedger) -> None:
    _register(ledger, 2)
    ledger.clear()

    assert len(ledger) == 0
