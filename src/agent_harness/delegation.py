# delegation.py
# Sub-agent delegation exposed as ordinary tools.
#
# Each sibling agent becomes a "delegate_to_<id>" tool. Invoking it starts a
# fresh executor run for that agent with its own tool set and its own step
# budget; the parent only sees the child's final text and status.

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import BaseModel, Field

from agent_harness.models import AgentConfig, RunResult, RunStatus
from agent_harness.tools import InvocableTool, ToolOutput, fail, ok

logger = logging.getLogger(__name__)

TOOL_PREFIX = "delegate_to_"


class DelegateInput(BaseModel):
    task: str = Field(..., description="The specific task to delegate to this agent.")
    context: str | None = Field(
        default=None, description="Additional context or information for the task."
    )


class Delegator(Protocol):
    async def delegate(
        self,
        config: AgentConfig,
        task: str,
        context: str | None = None,
        *,
        depth: int,
        pool: Sequence[AgentConfig],
        cancel: Any = None,
    ) -> RunResult: ...


def tool_id_for(agent: AgentConfig) -> str:
    return f"{TOOL_PREFIX}{agent.id}"


def _envelope(agent: AgentConfig, result: RunResult) -> ToolOutput:
    fields = {
        "agent_name": agent.name,
        "status": result.status.value,
        "tool_calls": result.tool_calls,
    }
    if result.status == RunStatus.COMPLETED:
        return ok(result=result.text, **fields)
    if result.status == RunStatus.STEP_LIMIT_REACHED:
        return ok(
            result=result.text,
            complete=False,
            message=f"{agent.name} hit its step limit before finishing; the result is partial.",
            **fields,
        )
    if result.status == RunStatus.CANCELLED:
        return fail(f"Delegation to {agent.name} was cancelled.", **fields)
    return fail(result.error or f"{agent.name} failed.", **fields)


def create_agent_tool(
    delegator: Delegator,
    agent: AgentConfig,
    *,
    depth: int,
    pool: Sequence[AgentConfig] = (),
    cancel: Any = None,
    timeout: float | None = None,
) -> InvocableTool:
    """Wrap ``agent`` as a tool whose invocation runs it at ``depth``."""

    async def call(args: DelegateInput) -> ToolOutput:
        logger.info("Delegating to %s (depth %d): %s", agent.id, depth, args.task[:80])
        result = await delegator.delegate(
            agent, args.task, args.context, depth=depth, pool=pool, cancel=cancel
        )
        return _envelope(agent, result)

    return InvocableTool(
        id=tool_id_for(agent),
        description=agent.description or f"Delegate a task to the {agent.name} agent.",
        input_model=DelegateInput,
        call=call,
        timeout=timeout,
    )


def generate_tools_from_agents(
    delegator: Delegator,
    agents: Sequence[AgentConfig],
    *,
    depth: int,
    cancel: Any = None,
    timeout: float | None = None,
) -> dict[str, InvocableTool]:
    """One delegation tool per agent, keyed by tool id."""
    return {
        tool_id_for(agent): create_agent_tool(
            delegator, agent, depth=depth, pool=agents, cancel=cancel, timeout=timeout
        )
        for agent in agents
    }
