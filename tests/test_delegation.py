import asyncio
import dataclasses

import pytest
from pydantic import BaseModel

from agent_harness.delegation import TOOL_PREFIX, generate_tools_from_agents, tool_id_for
from agent_harness.errors import ConfigError, TransportError
from agent_harness.models import (
    AgentConfig,
    FailureReason,
    RunStatus,
    TextDelta,
    ToolCallRequest,
    ToolCategory,
)
from agent_harness.prompts import ORCHESTRATOR_SYSTEM_PROMPT
from agent_harness.provider import ScriptedModel
from agent_harness.registry import ToolRegistry, default_registry
from agent_harness.service import AgentService
from agent_harness.tools import ToolDefinition, ok

ORCHESTRATOR = AgentConfig(
    id="orchestrator", name="Orchestrator", model="m", selected_tools=["list_files"]
)
RESEARCHER = AgentConfig(
    id="researcher",
    name="Researcher",
    model="m",
    system_prompt="You research.",
    description="Finds facts in the project.",
    selected_tools=["list_files"],
)
WRITER = AgentConfig(id="writer", name="Writer", model="m", selected_tools=["create_file"])


def call(tool_name, /, **args):
    return ToolCallRequest(tool_name=tool_name, input=args)


def execute(service, instruction="go", **kwargs):
    return asyncio.run(
        service.execute(ORCHESTRATOR, [{"role": "user", "content": instruction}], **kwargs)
    )


# ---------------------------------------------------------------------------
# Tool generation
# ---------------------------------------------------------------------------


def test_one_tool_per_agent():
    tools = generate_tools_from_agents(None, [RESEARCHER, WRITER], depth=1)
    assert list(tools) == ["delegate_to_researcher", "delegate_to_writer"]
    assert tool_id_for(RESEARCHER).startswith(TOOL_PREFIX)
    schema = tools["delegate_to_researcher"].schema()["function"]
    assert schema["description"] == "Finds facts in the project."
    assert schema["parameters"]["required"] == ["task"]


def test_tool_set_excludes_the_agent_itself(memory_ctx, settings):
    service = AgentService(ScriptedModel([]), memory_ctx, settings=settings)
    tool_set = service.build_tool_set(RESEARCHER, sub_agents=[RESEARCHER, WRITER])
    assert list(tool_set) == ["list_files", "delegate_to_writer"]


def test_no_delegation_tools_past_max_depth(memory_ctx, settings):
    service = AgentService(ScriptedModel([]), memory_ctx, settings=settings)
    tool_set = service.build_tool_set(ORCHESTRATOR, sub_agents=[RESEARCHER], depth=2)
    assert list(tool_set) == ["list_files"]


# ---------------------------------------------------------------------------
# Delegated runs
# ---------------------------------------------------------------------------


def test_delegation_runs_the_sub_agent(memory_ctx, settings):
    model = ScriptedModel([
        [call("delegate_to_researcher", task="Summarize the layout", context="Python project")],
        [TextDelta(text="The project is empty.")],
        [TextDelta(text="Researcher says it is empty.")],
    ])
    service = AgentService(model, memory_ctx, settings=settings)

    result = execute(service, sub_agents=[RESEARCHER])

    assert result.status == RunStatus.COMPLETED
    assert result.records[0].output == {
        "success": True,
        "result": "The project is empty.",
        "agent_name": "Researcher",
        "status": "completed",
        "tool_calls": 0,
    }
    parent_first, child, _ = model.calls
    assert parent_first[0]["content"] == ORCHESTRATOR_SYSTEM_PROMPT
    assert child == [
        {"role": "system", "content": "You research."},
        {"role": "system", "content": "Context: Python project"},
        {"role": "user", "content": "Summarize the layout"},
    ]


def test_child_depth_is_capped(memory_ctx, settings):
    model = ScriptedModel([
        [call("delegate_to_researcher", task="t")],
        [TextDelta(text="child")],
        [TextDelta(text="parent")],
    ])
    shallow = dataclasses.replace(settings, max_delegation_depth=1)
    service = AgentService(model, memory_ctx, settings=shallow)

    execute(service, sub_agents=[RESEARCHER, WRITER])

    assert model.tools_seen[0] == ["list_files", "delegate_to_researcher", "delegate_to_writer"]
    assert model.tools_seen[1] == ["list_files"]


def test_child_can_delegate_to_siblings_within_depth(memory_ctx, settings):
    model = ScriptedModel([
        [call("delegate_to_researcher", task="t")],
        [TextDelta(text="child")],
        [TextDelta(text="parent")],
    ])
    service = AgentService(model, memory_ctx, settings=settings)

    execute(service, sub_agents=[RESEARCHER, WRITER])

    assert model.tools_seen[1] == ["list_files", "delegate_to_writer"]


def test_step_limited_child_returns_partial_result(memory_ctx, settings):
    model = ScriptedModel([
        [call("delegate_to_researcher", task="t")],
        [TextDelta(text="partial"), call("list_files")],
        [TextDelta(text="parent done")],
    ])
    service = AgentService(model, memory_ctx, settings=dataclasses.replace(settings, max_steps=1))

    result = execute(service, sub_agents=[RESEARCHER], max_steps=5)

    output = result.records[0].output
    assert result.status == RunStatus.COMPLETED
    assert output["success"] is True
    assert output["complete"] is False
    assert output["status"] == "step_limit_reached"
    assert output["result"] == "partial"


def test_failed_child_is_a_tool_error_not_a_parent_failure(memory_ctx, settings):
    model = ScriptedModel([
        [call("delegate_to_researcher", task="t")],
        TransportError(FailureReason.NETWORK, "connection reset"),
        [TextDelta(text="researcher is down")],
    ])
    service = AgentService(model, memory_ctx, settings=settings)

    result = execute(service, sub_agents=[RESEARCHER])

    assert result.status == RunStatus.COMPLETED
    output = result.records[0].output
    assert output["success"] is False
    assert output["error"] == "connection reset"
    assert output["status"] == "failed"


def test_cancel_propagates_to_child_runs(memory_ctx, settings):
    cancel = asyncio.Event()

    class Empty(BaseModel):
        pass

    async def stop(ctx, args):
        cancel.set()
        return ok()

    registry = ToolRegistry([
        ToolDefinition("stop", "Stop", "Stop everything", ToolCategory.CUSTOM, Empty, stop)
    ]).freeze()
    child = RESEARCHER.model_copy(update={"selected_tools": ["stop"]})
    model = ScriptedModel([
        [call("delegate_to_researcher", task="t")],
        [call("stop")],
        [TextDelta(text="never")],
    ])
    service = AgentService(model, memory_ctx, registry=registry, settings=settings)

    result = execute(service, sub_agents=[child], cancel=cancel)

    assert result.status == RunStatus.CANCELLED
    assert result.records[0].output["status"] == "cancelled"
    assert len(model.calls) == 2


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def test_execute_rejects_unconfigured_agent(memory_ctx, settings):
    service = AgentService(ScriptedModel([]), memory_ctx, settings=settings)
    with pytest.raises(ConfigError):
        asyncio.run(service.execute(AgentConfig(id="x", name="X"), []))


def test_delegate_without_context(memory_ctx, settings):
    model = ScriptedModel([[TextDelta(text="done")]])
    service = AgentService(model, memory_ctx, registry=default_registry(), settings=settings)

    result = asyncio.run(service.delegate(WRITER, "write it"))

    assert result.status == RunStatus.COMPLETED
    assert model.calls[0][1:] == [{"role": "user", "content": "write it"}]
    assert model.calls[0][0]["content"] == "You are a helpful assistant."
