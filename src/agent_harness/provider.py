# provider.py
# Model-provider clients. The executor depends only on the ModelClient
# protocol: one streaming call per model turn, yielding provider events in
# arrival order.

import json
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any, Protocol, Union

import openai
from openai import AsyncOpenAI

from agent_harness.errors import TransportError
from agent_harness.models import (
    AgentConfig,
    FailureReason,
    ProviderEvent,
    TextDelta,
    ToolCallRequest,
)

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class ModelClient(Protocol):
    def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        config: AgentConfig,
    ) -> AsyncIterator[ProviderEvent]: ...


def classify_transport_error(exc: BaseException) -> TransportError:
    """Map a provider/client exception onto a TransportError reason."""
    if isinstance(exc, TransportError):
        return exc
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        reason = FailureReason.AUTH
    elif isinstance(exc, openai.RateLimitError):
        reason = FailureReason.RATE_LIMIT
    elif isinstance(exc, openai.APITimeoutError):
        reason = FailureReason.TIMEOUT
    elif isinstance(exc, openai.APIConnectionError):
        reason = FailureReason.NETWORK
    elif isinstance(exc, openai.APIStatusError):
        reason = FailureReason.PROVIDER
    else:
        reason = FailureReason.UNKNOWN
    return TransportError(reason, f"{type(exc).__name__}: {exc}")


# ---------------------------------------------------------------------------
# OpenAI-compatible streaming client
# ---------------------------------------------------------------------------


class OpenAIChatModel:
    """
    Streams chat completions from any OpenAI-compatible endpoint.

    Tool-call argument fragments are accumulated per index and emitted as
    complete ToolCallRequest events, in index order, once the turn ends.

    Example:
        model = OpenAIChatModel(api_key=os.getenv("OPENROUTER_API_KEY"))
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = OPENROUTER_BASE_URL,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key)

    async def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        config: AgentConfig,
    ) -> AsyncIterator[ProviderEvent]:
        request: dict[str, Any] = {
            "model": config.model,
            "messages": messages,
            "temperature": config.temperature,
            "stream": True,
        }
        if config.max_tokens:
            request["max_tokens"] = config.max_tokens
        if tools:
            request["tools"] = tools

        pending: dict[int, dict[str, str]] = {}
        try:
            stream = await self._client.chat.completions.create(**request)
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta
                    if delta.content:
                        yield TextDelta(text=delta.content)
                    for tc in delta.tool_calls or []:
                        slot = pending.setdefault(tc.index, {"id": "", "name": "", "args": ""})
                        if tc.id:
                            slot["id"] = tc.id
                        if tc.function and tc.function.name:
                            slot["name"] = tc.function.name
                        if tc.function and tc.function.arguments:
                            slot["args"] += tc.function.arguments
        except openai.OpenAIError as exc:
            raise classify_transport_error(exc) from exc

        for index in sorted(pending):
            yield _decode_call(pending[index])


def _decode_call(slot: dict[str, str]) -> ToolCallRequest:
    raw = slot["args"].strip() or "{}"
    try:
        args = json.loads(raw, strict=False)
    except json.JSONDecodeError as exc:
        return ToolCallRequest(
            tool_name=slot["name"],
            call_id=slot["id"] or None,
            input_error=f"Arguments are not valid JSON: {exc}",
        )
    if not isinstance(args, dict):
        return ToolCallRequest(
            tool_name=slot["name"],
            call_id=slot["id"] or None,
            input_error="Arguments must be a JSON object.",
        )
    return ToolCallRequest(tool_name=slot["name"], call_id=slot["id"] or None, input=args)


# ---------------------------------------------------------------------------
# Scripted client
# ---------------------------------------------------------------------------

Turn = Union[Sequence[ProviderEvent], Exception, Callable[[list[dict[str, Any]]], Sequence[ProviderEvent]]]


class ScriptedModel:
    """
    Replays a fixed list of turns; used for tests and offline demos.

    Each turn is a list of events, an exception to raise, or a callable that
    receives the transcript and returns the events. With ``repeat_last`` the
    final turn is replayed forever; otherwise running past the script raises
    TransportError.
    """

    def __init__(self, turns: Sequence[Turn], repeat_last: bool = False) -> None:
        self._turns = list(turns)
        self._repeat_last = repeat_last
        self.calls: list[list[dict[str, Any]]] = []
        self.tools_seen: list[list[str]] = []

    async def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        config: AgentConfig,
    ) -> AsyncIterator[ProviderEvent]:
        index = len(self.calls)
        self.calls.append([dict(m) for m in messages])
        self.tools_seen.append([t["function"]["name"] for t in tools])

        if index >= len(self._turns):
            if not (self._repeat_last and self._turns):
                raise TransportError(FailureReason.PROVIDER, "Scripted model has no more turns.")
            index = len(self._turns) - 1

        turn = self._turns[index]
        if isinstance(turn, Exception):
            raise turn
        events = turn(messages) if callable(turn) else turn
        for event in events:
            yield event
