"""Copilot-AI.

This package contains the in-app assistant runtime used by Copilot-AI to turn a
user request into a validated, auditable agent answer.

High-level architecture
-----------------------

The codebase is organized around two major concepts:

- **Agents**: named, schema-typed task handlers. Every agent returns output
  that conforms to its declared output schema.
- **Tools**: named, schema-typed functions an agent may call while it works.
  Tools are gated by an allowlist per agent, by role/tenant permissions, and,
  for side-effecting tools, by an explicit human confirmation step.

Core subpackages
----------------

- ``copilot_ai.agent_core``:

  - Tool and agent registries.
  - The tool invocation adapter (validation, permissions, timeouts, audit).
  - A LangGraph-based tool-calling loop with a bounded step budget.
  - The base agent template and the built-in agents.
  - The pending action ledger for write actions awaiting confirmation.
  - The streaming session that turns run events into an outward event stream.

- ``copilot_ai.server``:

  - Settings, the FastAPI routers and the exception handlers that expose the
    runtime to clients.

Typical workflow
----------------

Most integrations should use ``copilot_ai.agent_core.service.CopilotService``:

1. Resolve the agent and validate its input.
2. Run the agent (optionally through the tool-calling loop).
3. Register any proposed write actions into the pending action ledger.
4. After the user confirms an action, claim it, execute it and record the
   result summary.
"""

__version__ = "0.1.0"
