# registry.py
# Static tool catalog and per-run tool-set assembly.
#
# The registry is populated once at start-up and then frozen; tool identity
# and schema stay stable for the lifetime of any in-flight run. build()
# resolves an agent's selected ids against it and overlays per-run
# delegation tools.

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Iterable

from agent_harness.context_tools import CONTEXT_TOOLS
from agent_harness.errors import DuplicateToolError, RegistryFrozenError
from agent_harness.file_tools import FILE_TOOLS
from agent_harness.models import ToolCategory
from agent_harness.tools import InvocableTool, ToolContext, ToolDefinition

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """Ordered catalog of tool definitions keyed by id."""

    def __init__(self, definitions: Iterable[ToolDefinition] = ()) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {definition.id!r}: the registry is frozen."
            )
        if definition.id in self._tools:
            raise DuplicateToolError(f"Tool id {definition.id!r} is already registered.")
        self._tools[definition.id] = definition

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_by_id(self, tool_id: str) -> ToolDefinition | None:
        return self._tools.get(tool_id)

    def list_by_category(self, category: ToolCategory | str) -> list[ToolDefinition]:
        category = ToolCategory(category)
        return [d for d in self._tools.values() if d.category == category]

    def default_enabled_ids(self) -> list[str]:
        return [d.id for d in self._tools.values() if d.default_enabled]

    def all_ids(self) -> list[str]:
        return list(self._tools)

    def count_by_category(self) -> dict[ToolCategory, int]:
        counts = {c: 0 for c in ToolCategory}
        for definition in self._tools.values():
            counts[definition.category] += 1
        return counts

    def validate_ids(self, tool_ids: Iterable[str]) -> dict[str, list[str]]:
        """Partition ids into known and unknown. Never raises."""
        valid: list[str] = []
        invalid: list[str] = []
        for tool_id in tool_ids:
            (valid if tool_id in self._tools else invalid).append(tool_id)
        return {"valid": valid, "invalid": invalid}

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------
    # Tool-set assembly
    # ------------------------------------------------------------------

    def build(
        self,
        selected_ids: Iterable[str],
        context: ToolContext,
        extra: Mapping[str, InvocableTool] | None = None,
    ) -> "ToolSet":
        """
        Resolve ``selected_ids`` into a fresh ToolSet for one run.

        Unknown ids are dropped with a warning. ``extra`` tools are laid over
        the result and win over a static tool of the same id.
        """
        split = self.validate_ids(selected_ids)
        for tool_id in split["invalid"]:
            logger.warning("Tool not found in registry, dropping: %s", tool_id)

        tools: dict[str, InvocableTool] = {}
        for tool_id in split["valid"]:
            if tool_id not in tools:
                tools[tool_id] = self._tools[tool_id].bind(context)
        for tool_id, tool in (extra or {}).items():
            if tool_id in tools:
                logger.info("Delegation tool %s shadows the registry tool", tool_id)
            tools[tool_id] = tool
        return ToolSet(tools)


def default_registry() -> ToolRegistry:
    """The built-in catalog: five file tools and four context tools, frozen."""
    return ToolRegistry([*FILE_TOOLS, *CONTEXT_TOOLS]).freeze()


# ---------------------------------------------------------------------------
# ToolSet
# ---------------------------------------------------------------------------


class ToolSet(Mapping[str, InvocableTool]):
    """Read-only id -> tool mapping consumed by exactly one executor run."""

    def __init__(self, tools: Mapping[str, InvocableTool]) -> None:
        self._tools = MappingProxyType(dict(tools))

    def __getitem__(self, tool_id: str) -> InvocableTool:
        return self._tools[tool_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    def __repr__(self) -> str:
        return f"ToolSet({list(self._tools)})"
