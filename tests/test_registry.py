import logging

import pytest

from agent_harness.errors import DuplicateToolError, RegistryFrozenError
from agent_harness.file_tools import FILE_TOOLS, ReadFileInput
from agent_harness.models import ToolCategory
from agent_harness.registry import ToolRegistry, ToolSet, default_registry
from agent_harness.tools import InvocableTool, ToolDefinition, ok

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def test_default_registry_catalog():
    registry = default_registry()
    assert registry.frozen
    assert len(registry) == 9
    assert registry.default_enabled_ids() == [
        "read_file", "write_file", "create_file", "create_folder", "list_files",
    ]
    counts = registry.count_by_category()
    assert counts[ToolCategory.FILE] == 5
    assert counts[ToolCategory.CONTEXT] == 4
    assert counts[ToolCategory.AGENT] == 0


def test_get_by_id_and_list_by_category():
    registry = default_registry()
    assert registry.get_by_id("read_file").name == "Read File"
    assert registry.get_by_id("nope") is None
    ids = [d.id for d in registry.list_by_category("context")]
    assert ids == ["write_context_note", "read_context_note", "list_context_notes", "log_progress"]


def test_validate_ids_partitions_without_raising():
    registry = default_registry()
    result = registry.validate_ids(["read_file", "ghost", "log_progress", ""])
    assert result == {"valid": ["read_file", "log_progress"], "invalid": ["ghost", ""]}


def test_frozen_registry_rejects_registration():
    registry = default_registry()
    with pytest.raises(RegistryFrozenError):
        registry.register(FILE_TOOLS[0])


def test_duplicate_id_rejected():
    with pytest.raises(DuplicateToolError, match="read_file"):
        ToolRegistry([FILE_TOOLS[0], FILE_TOOLS[0]])


# ---------------------------------------------------------------------------
# Tool-set assembly
# ---------------------------------------------------------------------------


def test_build_drops_unknown_ids_with_warning(memory_ctx, caplog):
    registry = default_registry()
    with caplog.at_level(logging.WARNING, logger="agent_harness.registry"):
        tool_set = registry.build(["list_files", "ghost_tool", "list_files"], memory_ctx)
    assert list(tool_set) == ["list_files"]
    assert "ghost_tool" in caplog.text


def test_build_keeps_selection_order(memory_ctx):
    tool_set = default_registry().build(["create_file", "read_file"], memory_ctx)
    assert list(tool_set) == ["create_file", "read_file"]
    names = [s["function"]["name"] for s in tool_set.schemas()]
    assert names == ["create_file", "read_file"]


def test_extra_tools_shadow_registry_ids(memory_ctx):
    shadow = InvocableTool("read_file", "shadow", ReadFileInput, lambda args: ok(shadow=True))
    tool_set = default_registry().build(["read_file"], memory_ctx, {"read_file": shadow})
    assert tool_set["read_file"] is shadow


def test_each_build_is_a_fresh_tool_set(memory_ctx):
    registry = default_registry()
    extra = InvocableTool("delegate_to_x", "d", ReadFileInput, lambda args: ok())
    first = registry.build(["read_file"], memory_ctx, {"delegate_to_x": extra})
    second = registry.build(["read_file"], memory_ctx)
    assert "delegate_to_x" in first
    assert "delegate_to_x" not in second
    assert first["read_file"] is not second["read_file"]


def test_tool_set_is_read_only():
    tool_set = ToolSet({})
    with pytest.raises(TypeError):
        tool_set["x"] = None


def test_custom_definitions_register_before_freeze():
    custom = ToolDefinition(
        id="echo",
        name="Echo",
        description="Echo the path",
        category=ToolCategory.CUSTOM,
        input_model=ReadFileInput,
        handler=lambda ctx, args: ok(path=args.path),
    )
    registry = ToolRegistry(FILE_TOOLS)
    registry.register(custom)
    registry.freeze()
    assert registry.list_by_category(ToolCategory.CUSTOM) == [custom]
    assert "echo" in registry
