from datetime import datetime, timezone

import pytest

from agent_harness.config import Settings
from agent_harness.context_store import ContextStore
from agent_harness.models import AgentConfig
from agent_harness.tools import ToolContext
from agent_harness.workspace import DirectoryWorkspace, InMemoryWorkspace

FIXED_TIME = datetime(2025, 3, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return ContextStore(tmp_path, clock=lambda: FIXED_TIME)


@pytest.fixture
def memory_ctx(store):
    return ToolContext(workspace=InMemoryWorkspace(), context_store=store)


@pytest.fixture
def dir_ctx(tmp_path, store):
    return ToolContext(workspace=DirectoryWorkspace(tmp_path), context_store=store)


@pytest.fixture
def settings():
    return Settings(
        api_key="test-key",
        base_url="http://localhost",
        max_steps=10,
        tool_timeout=5.0,
        delegation_timeout=30.0,
        max_delegation_depth=2,
        log_level="WARNING",
    )


@pytest.fixture
def agent():
    return AgentConfig(
        id="writer",
        name="Writer",
        model="test/model",
        system_prompt="You write files.",
        selected_tools=["create_folder", "create_file", "read_file"],
    )
