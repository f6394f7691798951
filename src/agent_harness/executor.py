# executor.py
# Agent Executor: the bounded, streaming, multi-step tool loop.
#
# The executor owns all control flow. The model proposes text and tool calls;
# the executor resolves each call against the run's ToolSet, invokes it,
# records the outcome and feeds the result back as the next turn's context.
#
# Control flow per model turn:
#   cancel check → stream model events → collect tool calls (step cap)
#   → invoke calls (request order preserved) → append results → repeat
#
# Terminal states: COMPLETED | STEP_LIMIT_REACHED | FAILED | CANCELLED.
# Tool failures never end a run; only the transport can fail it.

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any

from agent_harness.errors import ConfigError
from agent_harness.models import (
    AgentConfig,
    ExecutionStep,
    ExecutorEvent,
    Message,
    RunFinished,
    RunResult,
    RunStatus,
    StepKind,
    StepStarted,
    TextChunk,
    TextDelta,
    ToolCallFinished,
    ToolCallRequest,
    ToolCallResult,
    ToolCallStarted,
    ToolExecutionRecord,
    ToolStatus,
)
from agent_harness.prompts import system_prompt_for
from agent_harness.provider import ModelClient, classify_transport_error
from agent_harness.registry import ToolSet
from agent_harness.tools import ToolOutput, fail

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10


@dataclass
class _PendingCall:
    step: int
    call_id: str
    request: ToolCallRequest
    provider_output: ToolOutput | None = None


class _RunState:
    """Mutable bookkeeping for one run. Steps and records are append-only."""

    def __init__(self, transcript: list[dict[str, Any]]) -> None:
        self.transcript = transcript
        self.steps: list[ExecutionStep] = []
        self.records: list[ToolExecutionRecord] = []
        self.texts: list[str] = []
        self.tool_calls = 0

    def add_step(self, kind: StepKind, payload: dict[str, Any]) -> ExecutionStep:
        step = ExecutionStep(index=len(self.steps) + 1, kind=kind, payload=payload)
        self.steps.append(step)
        return step

    def result(self, status: RunStatus, **extra: Any) -> RunResult:
        return RunResult(
            status=status,
            text="\n\n".join(self.texts),
            records=list(self.records),
            steps=list(self.steps),
            transcript=[dict(m) for m in self.transcript],
            **extra,
        )


def _to_message(message: Message | dict[str, Any]) -> dict[str, Any]:
    if isinstance(message, Message):
        return message.model_dump()
    return dict(message)


def _pair_provider_result(calls: list[_PendingCall], event: ToolCallResult) -> None:
    """Attach a provider-side result to the first unmatched call of that tool."""
    for call in calls:
        if call.request.tool_name == event.tool_name and call.provider_output is None:
            call.provider_output = event.output
            return
    logger.warning("Dropping tool-result for %s with no matching call", event.tool_name)


class AgentExecutor:
    """
    Runs one agent configuration against one ToolSet.

    ``max_steps`` caps the number of tool calls in the run. ``cancel`` is
    checked before every model turn and every tool invocation; a tool that has
    started is always allowed to finish. ``tool_timeout`` (seconds) turns a
    slow tool into an ordinary tool error.

    Example:
        executor = AgentExecutor(config, registry.build(ids, ctx), model)
        result = await executor.run([{"role": "user", "content": "hi"}])
    """

    def __init__(
        self,
        config: AgentConfig,
        tool_set: ToolSet,
        model: ModelClient,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
        tool_timeout: float | None = None,
        concurrent_tools: bool = False,
        cancel: asyncio.Event | None = None,
        on_event: Callable[[ExecutorEvent], None] | None = None,
    ) -> None:
        if max_steps < 1:
            raise ConfigError(f"max_steps must be at least 1, got {max_steps}")
        self.config = config
        self.tool_set = tool_set
        self.model = model
        self.max_steps = max_steps
        self.tool_timeout = tool_timeout
        self.concurrent_tools = concurrent_tools
        self.cancel = cancel or asyncio.Event()
        self.on_event = on_event

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(self, messages: Sequence[Message | dict[str, Any]]) -> RunResult:
        async for event in self.stream(messages):
            if isinstance(event, RunFinished):
                return event.result
        raise RuntimeError("executor stream ended without a RunFinished event")

    async def stream(self, messages: Sequence[Message | dict[str, Any]]) -> AsyncIterator[ExecutorEvent]:
        async for event in self._events(messages):
            if self.on_event is not None:
                self.on_event(event)
            yield event

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _events(self, messages: Sequence[Message | dict[str, Any]]) -> AsyncIterator[ExecutorEvent]:
        state = _RunState(
            [{"role": "system", "content": system_prompt_for(self.config)}]
            + [_to_message(m) for m in messages]
        )
        logger.info(
            "Run started: agent=%s tools=%s max_steps=%d",
            self.config.id, list(self.tool_set), self.max_steps,
        )
        turn = 0

        while True:
            if self.cancel.is_set():
                yield self._finish(state, RunStatus.CANCELLED)
                return

            turn += 1
            yield StepStarted(turn=turn)

            # ── Model turn ───────────────────────────────────────────
            fragments: list[str] = []
            calls: list[_PendingCall] = []
            try:
                async with aclosing(
                    self.model.stream(list(state.transcript), self.tool_set.schemas(), self.config)
                ) as events:
                    async for event in events:
                        if isinstance(event, TextDelta):
                            fragments.append(event.text)
                            yield TextChunk(text=event.text)
                        elif isinstance(event, ToolCallRequest):
                            if state.tool_calls >= self.max_steps:
                                break
                            state.tool_calls += 1
                            calls.append(
                                _PendingCall(
                                    step=state.tool_calls,
                                    call_id=event.call_id or f"call_{state.tool_calls}",
                                    request=event,
                                )
                            )
                        elif isinstance(event, ToolCallResult):
                            _pair_provider_result(calls, event)
            except Exception as exc:
                error = classify_transport_error(exc)
                logger.error("Model transport failed (%s): %s", error.reason.value, error)
                self._close_turn(state, fragments, [])
                yield self._finish(
                    state, RunStatus.FAILED, failure_reason=error.reason, error=str(error)
                )
                return

            self._close_turn(state, fragments, calls)

            if not calls:
                yield self._finish(state, RunStatus.COMPLETED)
                return

            # ── Tool calls ───────────────────────────────────────────
            async for event in self._run_calls(state, calls):
                yield event

            if self.cancel.is_set():
                yield self._finish(state, RunStatus.CANCELLED)
                return
            if state.tool_calls >= self.max_steps:
                yield self._finish(state, RunStatus.STEP_LIMIT_REACHED)
                return

    def _close_turn(self, state: _RunState, fragments: list[str], calls: list[_PendingCall]) -> None:
        text = "".join(fragments)
        if text:
            state.texts.append(text)
            state.add_step(StepKind.TEXT, {"text": text})
        if not text and not calls:
            return
        message: dict[str, Any] = {"role": "assistant", "content": text or None}
        if calls:
            message["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {
                        "name": call.request.tool_name,
                        "arguments": json.dumps(call.request.input),
                    },
                }
                for call in calls
            ]
        state.transcript.append(message)

    async def _run_calls(self, state: _RunState, calls: list[_PendingCall]) -> AsyncIterator[ExecutorEvent]:
        if self.concurrent_tools:
            for call in calls:
                yield self._start_call(state, call)
            records = await asyncio.gather(*(self._execute(call) for call in calls))
            for record in records:
                yield self._finish_call(state, record)
            return

        for position, call in enumerate(calls):
            if self.cancel.is_set():
                self._answer_skipped(state, calls[position:])
                return
            yield self._start_call(state, call)
            record = await self._execute(call)
            yield self._finish_call(state, record)

    def _answer_skipped(self, state: _RunState, calls: list[_PendingCall]) -> None:
        """Every tool_calls id in the transcript needs a tool message, even unrun ones."""
        output = fail("Cancelled before invocation.", error_type="cancelled")
        for call in calls:
            state.transcript.append(
                {"role": "tool", "tool_call_id": call.call_id, "content": json.dumps(output)}
            )

    def _start_call(self, state: _RunState, call: _PendingCall) -> ToolCallStarted:
        state.add_step(
            StepKind.TOOL_CALL,
            {"step": call.step, "call_id": call.call_id, "tool_id": call.request.tool_name,
             "input": call.request.input},
        )
        return ToolCallStarted(
            step=call.step, call_id=call.call_id,
            tool_id=call.request.tool_name, input=call.request.input,
        )

    def _finish_call(self, state: _RunState, record: ToolExecutionRecord) -> ToolCallFinished:
        output = record.output if record.output is not None else fail(record.error or "")
        state.add_step(
            StepKind.TOOL_RESULT,
            {"step": record.step, "call_id": record.call_id, "tool_id": record.tool_id,
             "status": record.status.value, "output": output},
        )
        state.records.append(record)
        state.transcript.append(
            {
                "role": "tool",
                "tool_call_id": record.call_id,
                "content": json.dumps(output, default=str),
            }
        )
        return ToolCallFinished(record=record)

    async def _execute(self, call: _PendingCall) -> ToolExecutionRecord:
        name = call.request.tool_name
        if call.request.input_error:
            output = fail(call.request.input_error, error_type="input")
        elif call.provider_output is not None:
            output = call.provider_output
        elif name not in self.tool_set:
            available = ", ".join(self.tool_set) or "none"
            output = fail(f"Unknown tool: {name}. Available tools: {available}", error_type="unknown_tool")
        else:
            tool = self.tool_set[name]
            timeout = tool.timeout if tool.timeout is not None else self.tool_timeout
            logger.debug("Invoking %s (step %d)", name, call.step)
            try:
                output = await asyncio.wait_for(tool.invoke(call.request.input), timeout)
            except asyncio.TimeoutError:
                output = fail(f"{name} timed out after {timeout}s", error_type="timeout")

        success = bool(output.get("success"))
        return ToolExecutionRecord(
            step=call.step,
            call_id=call.call_id,
            tool_id=name,
            input=call.request.input,
            output=output,
            error=None if success else str(output.get("error", "unknown error")),
            status=ToolStatus.SUCCESS if success else ToolStatus.ERROR,
        )

    def _finish(self, state: _RunState, status: RunStatus, **extra: Any) -> RunFinished:
        result = state.result(status, **extra)
        logger.info(
            "Run finished: agent=%s status=%s tool_calls=%d",
            self.config.id, status.value, len(result.records),
        )
        return RunFinished(result=result)
