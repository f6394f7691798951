# tools.py
# Tool abstractions shared by the registry, the built-in tools and delegation.
#
# A ToolDefinition is static: id, schema, handler. Binding it to a
# ToolContext (the workspace and context store of one project) yields an
# InvocableTool. Every invocation returns the uniform envelope
#   {"success": True, ...} | {"success": False, "error": str, "error_type": str}
# and never raises.

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from pydantic import BaseModel, ValidationError

from agent_harness.context_store import ContextStore
from agent_harness.models import ToolCategory
from agent_harness.workspace import Workspace

logger = logging.getLogger(__name__)

ToolOutput = dict[str, Any]
Handler = Callable[..., Union[ToolOutput, Awaitable[ToolOutput]]]


# ---------------------------------------------------------------------------
# Envelope helpers
# ---------------------------------------------------------------------------


def ok(**fields: Any) -> ToolOutput:
    return {"success": True, **fields}


def fail(error: str, error_type: str = "execution", **fields: Any) -> ToolOutput:
    return {"success": False, "error": error, "error_type": error_type, **fields}


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "input"
        parts.append(f"{loc}: {err['msg']}")
    return "Invalid input: " + "; ".join(parts)


# ---------------------------------------------------------------------------
# Context and definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolContext:
    """Per-project dependencies handed to tool handlers."""

    workspace: Workspace
    context_store: ContextStore


class InvocableTool:
    """A tool ready to be called by one executor run."""

    def __init__(
        self,
        id: str,
        description: str,
        input_model: type[BaseModel],
        call: Callable[[BaseModel], Union[ToolOutput, Awaitable[ToolOutput]]],
        timeout: float | None = None,
    ) -> None:
        self.id = id
        self.description = description
        self.input_model = input_model
        self.timeout = timeout
        self._call = call

    def schema(self) -> dict[str, Any]:
        """OpenAI-style function spec exposed to the model."""
        return {
            "type": "function",
            "function": {
                "name": self.id,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(),
            },
        }

    async def invoke(self, raw_input: dict[str, Any]) -> ToolOutput:
        try:
            args = self.input_model.model_validate(raw_input or {})
        except ValidationError as exc:
            return fail(_format_validation_error(exc), error_type="input")

        try:
            if inspect.iscoroutinefunction(self._call):
                result = await self._call(args)
            else:
                result = await asyncio.to_thread(self._call, args)
        except Exception as exc:
            logger.debug("Tool %s raised", self.id, exc_info=True)
            return fail(f"{self.id} failed: {exc}")

        if not isinstance(result, dict) or "success" not in result:
            return fail(f"{self.id} returned a malformed result")
        return result

    def __repr__(self) -> str:
        return f"InvocableTool({self.id!r})"


@dataclass(frozen=True)
class ToolDefinition:
    """
    Static catalog entry for a tool.

    ``description`` is the short UI text; ``instructions`` is what the
    model sees when the tool is offered to it.
    """

    id: str
    name: str
    description: str
    category: ToolCategory
    input_model: type[BaseModel]
    handler: Handler
    default_enabled: bool = False
    instructions: str = ""

    def bind(self, context: ToolContext) -> InvocableTool:
        handler = self.handler
        if inspect.iscoroutinefunction(handler):

            async def call(args: BaseModel) -> ToolOutput:
                return await handler(context, args)

        else:

            def call(args: BaseModel) -> ToolOutput:
                return handler(context, args)

        return InvocableTool(
            id=self.id,
            description=self.instructions or self.description,
            input_model=self.input_model,
            call=call,
        )
