# run.py
# Entry point. Config and wiring only; no logic lives here.
#
# Swap the model string for any OpenRouter-supported model.
# https://openrouter.ai/models

import argparse
import asyncio
import logging
import signal
import sys

from rich.logging import RichHandler

from agent_harness import display
from agent_harness.config import Settings, load_agent_settings
from agent_harness.context_store import ContextStore
from agent_harness.errors import ConfigError
from agent_harness.models import AgentConfig, RunStatus
from agent_harness.prompts import ORCHESTRATOR_ID, ORCHESTRATOR_NAME
from agent_harness.provider import OpenAIChatModel
from agent_harness.registry import default_registry
from agent_harness.service import AgentService
from agent_harness.tools import ToolContext
from agent_harness.workspace import DirectoryWorkspace

DEFAULT_MODEL = "anthropic/claude-3.5-haiku"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="agent-harness", description="Run an agent against a project directory.")
    parser.add_argument("instruction", help="What the agent should do.")
    parser.add_argument("--project", default=".", help="Project directory (default: cwd).")
    parser.add_argument("--agents", help="JSON agent settings (orchestrator + sub-agents).")
    parser.add_argument("--model", default=DEFAULT_MODEL, help="Model when no --agents file is given.")
    parser.add_argument("--max-steps", type=int, help="Tool-call budget for the run.")
    parser.add_argument("--tools", help="Comma-separated tool ids, overriding the agent's selection.")
    return parser.parse_args(argv)


async def _main(args: argparse.Namespace, settings: Settings) -> RunStatus:
    registry = default_registry()

    if args.agents:
        agent_settings = load_agent_settings(args.agents)
        orchestrator = agent_settings.orchestrator
        sub_agents = agent_settings.sub_agents
        if orchestrator is None:
            raise ConfigError(f"{args.agents} has no orchestrator configured")
    else:
        orchestrator = AgentConfig(
            id=ORCHESTRATOR_ID,
            name=ORCHESTRATOR_NAME,
            model=args.model,
            selected_tools=registry.default_enabled_ids(),
        )
        sub_agents = []
    if args.tools:
        orchestrator = orchestrator.model_copy(
            update={"selected_tools": [t.strip() for t in args.tools.split(",") if t.strip()]}
        )

    store = ContextStore(args.project)
    store.initialize()
    service = AgentService(
        model=OpenAIChatModel(api_key=settings.api_key, base_url=settings.base_url),
        context=ToolContext(workspace=DirectoryWorkspace(args.project), context_store=store),
        registry=registry,
        settings=settings,
    )

    cancel = asyncio.Event()
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:
        pass

    max_steps = args.max_steps or settings.max_steps
    tool_set = service.build_tool_set(orchestrator, sub_agents=sub_agents)
    display.banner(orchestrator, list(tool_set), max_steps)
    display.prompt_received(args.instruction)

    result = await service.execute(
        orchestrator,
        [{"role": "user", "content": args.instruction}],
        sub_agents=sub_agents,
        cancel=cancel,
        on_event=display.render,
        max_steps=max_steps,
    )
    display.execution_summary(result)
    display.final_result(result)
    return result.status


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        display.halt(str(exc))
        return 2

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=display.console, show_path=False)],
    )

    try:
        status = asyncio.run(_main(args, settings))
    except ConfigError as exc:
        display.halt(str(exc))
        return 2
    return 0 if status in (RunStatus.COMPLETED, RunStatus.STEP_LIMIT_REACHED) else 1


if __name__ == "__main__":
    sys.exit(main())
