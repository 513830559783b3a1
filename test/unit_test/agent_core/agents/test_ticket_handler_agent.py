from __future__ import annotations

import json

import pytest

from copilot_ai.agent_core.agents.ticket_handler import TicketHandlerAgent, ensure_action_ids
from copilot_ai.agent_core.schemas.domain import ActionHelperOutput, ProposedAction, RiskLevel
from copilot_ai.agent_core.tools.builtin import create_ticket_tool
from copilot_ai.agent_core.tools.registry import ToolRegistry


def _action(action_id=None) -> ProposedAction:
    return ProposedAction(
        action_id=action_id,
        tool_id="create-ticket",
        args={"title": "VPN down", "description": "VPN drops hourly", "priority": "high"},
        title="Create VPN ticket",
        risk=RiskLevel.low,
        preview="Creates a high priority ticket",
    )


PLAN = {
    "summary": "The VPN keeps dropping.",
    "nextSteps": ["Restart the VPN client"],
    "proposedActions": [
        {
            "toolId": "create-ticket",
            "args": {"title": "VPN down", "description": "VPN drops hourly", "priority": "high"},
            "title": "Create VPN ticket",
            "risk": "low",
            "preview": "Creates a high priority ticket",
        }
    ],
}


@pytest.mark.asyncio
async def test_plan_gets_action_ids_and_nothing_is_executed(
    make_model, make_context, model_factory_for, tool_call, text_response, sink
) -> None:
    registry = ToolRegistry()
    registry.register(create_ticket_tool)
    registry.set_allowlist("ticket-handler", ["create-ticket"])
    model = make_model(
        [tool_call("create-ticket", {"title": "VPN down", "description": "drops"}), text_response("Proposed.")],
        extracted=PLAN,
    )

    output = await TicketHandlerAgent(model_factory=model_factory_for(model)).run(
        {"request": "VPN drops every hour", "urgency": "high"}, make_context(tool_registry=registry)
    )

    assert isinstance(output, ActionHelperOutput)
    (action,) = output.proposed_actions
    assert action.action_id.startswith("action-")
    assert len(action.action_id) == len("action-") + 8
    assert action.requires_confirmation is True
    tool_return = model.extractions[0]["messages"][2].parts[0]
    assert json.loads(tool_return.content)["reason"] == "CONFIRMATION_REQUIRED"
    assert sink.of_type("tool_invocation_start") == []


@pytest.mark.asyncio
async def test_user_input_carries_urgency_tenant_and_context(make_model, make_context, model_factory_for) -> None:
    model = make_model(extracted={"summary": "Need more detail."})

    output = await TicketHandlerAgent(model_factory=model_factory_for(model)).run(
        {"request": "Laptop broken", "context": "Dell XPS"}, make_context(tools=())
    )

    user_input = model.invocations[0]["messages"][0].parts[1].content
    assert user_input == "User request:\nLaptop broken\n\nAdditional context:\nDell XPS\n\nUrgency: medium\n\nTenant: dev-tenant"
    assert output.proposed_actions == []
    assert output.next_steps == []


def test_ensure_action_ids_keeps_long_ids_and_replaces_short_ones() -> None:
    kept, replaced, missing = ensure_action_ids([_action("keep-me-1"), _action("abc"), _action()])

    assert kept.action_id == "keep-me-1"
    assert replaced.action_id.startswith("action-")
    assert missing.action_id.startswith("action-")
    assert replaced.action_id != missing.action_id
