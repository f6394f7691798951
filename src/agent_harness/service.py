# service.py
# AgentService: wiring between configuration, tool sets and executor runs.
#
# A service is bound to one project (its ToolContext) and one model client.
# Every call to execute() builds a fresh ToolSet, so delegation tools created
# for one run are never visible to another.

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from agent_harness.config import Settings, validate_agent_config
from agent_harness.delegation import generate_tools_from_agents
from agent_harness.executor import AgentExecutor
from agent_harness.models import AgentConfig, ExecutorEvent, Message, RunResult
from agent_harness.provider import ModelClient
from agent_harness.registry import ToolRegistry, ToolSet, default_registry
from agent_harness.tools import ToolContext

logger = logging.getLogger(__name__)


class AgentService:
    def __init__(
        self,
        model: ModelClient,
        context: ToolContext,
        registry: ToolRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.model = model
        self.context = context
        self.registry = registry or default_registry()
        self.settings = settings or Settings.from_env()

    def build_tool_set(
        self,
        config: AgentConfig,
        *,
        sub_agents: Sequence[AgentConfig] = (),
        depth: int = 0,
        cancel: asyncio.Event | None = None,
    ) -> ToolSet:
        """
        Resolve ``config.selected_tools`` and add one delegation tool per
        sub-agent, unless ``depth`` already reached the delegation cap.
        """
        extra = {}
        siblings = [a for a in sub_agents if a.id != config.id]
        if siblings and depth < self.settings.max_delegation_depth:
            extra = generate_tools_from_agents(
                self,
                siblings,
                depth=depth + 1,
                cancel=cancel,
                timeout=self.settings.delegation_timeout,
            )
        elif siblings:
            logger.info("Delegation depth %d reached; %s gets no delegation tools", depth, config.id)
        return self.registry.build(config.selected_tools, self.context, extra)

    async def execute(
        self,
        config: AgentConfig,
        messages: Sequence[Message | dict[str, Any]],
        *,
        sub_agents: Sequence[AgentConfig] = (),
        cancel: asyncio.Event | None = None,
        on_event: Callable[[ExecutorEvent], None] | None = None,
        max_steps: int | None = None,
        concurrent_tools: bool = False,
        depth: int = 0,
    ) -> RunResult:
        validate_agent_config(config)
        cancel = cancel or asyncio.Event()
        executor = AgentExecutor(
            config,
            self.build_tool_set(config, sub_agents=sub_agents, depth=depth, cancel=cancel),
            self.model,
            max_steps=max_steps or self.settings.max_steps,
            tool_timeout=self.settings.tool_timeout,
            concurrent_tools=concurrent_tools,
            cancel=cancel,
            on_event=on_event,
        )
        return await executor.run(messages)

    async def delegate(
        self,
        config: AgentConfig,
        task: str,
        context: str | None = None,
        *,
        depth: int = 1,
        pool: Sequence[AgentConfig] = (),
        cancel: asyncio.Event | None = None,
    ) -> RunResult:
        """Run ``config`` on a single task, as a sub-agent would be run."""
        messages: list[dict[str, Any]] = []
        if context:
            messages.append({"role": "system", "content": f"Context: {context}"})
        messages.append({"role": "user", "content": task})
        return await self.execute(config, messages, sub_agents=pool, cancel=cancel, depth=depth)
