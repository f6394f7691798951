# models.py
# Data contracts for the agent execution core.
# No business logic lives here: pure schema and validation.

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ToolCategory(str, Enum):
    FILE = "file"
    CONTEXT = "context"
    AGENT = "agent"
    CUSTOM = "custom"


class ContextCategory(str, Enum):
    ARCHITECTURE = "architecture"
    PROGRESS = "progress"
    RESEARCH = "research"
    TASKS = "tasks"
    NOTES = "notes"


class StepKind(str, Enum):
    TEXT = "text"
    TOOL_CALL = "toolCall"
    TOOL_RESULT = "toolResult"


class ToolStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class RunStatus(str, Enum):
    COMPLETED = "completed"
    STEP_LIMIT_REACHED = "step_limit_reached"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FailureReason(str, Enum):
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    PROVIDER = "provider"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Agent configuration
# ---------------------------------------------------------------------------


class AgentConfig(BaseModel):
    """An agent as configured by the surrounding application."""

    id: str
    name: str
    provider: str = Field(default="openrouter")
    model: str = Field(default="")
    system_prompt: str = Field(default="")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    selected_tools: list[str] = Field(
        default_factory=list,
        description="Ordered tool ids exposed to the model. Duplicates are collapsed.",
    )
    description: str = Field(
        default="",
        description="Shown to an orchestrator that may delegate to this agent.",
    )


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


# ---------------------------------------------------------------------------
# Workspace records
# ---------------------------------------------------------------------------


class FileRecord(BaseModel):
    """A file or folder known to the project workspace."""

    id: str
    name: str
    type: Literal["file", "folder"]
    parent_id: str | None = None
    path: str = Field(..., description="Project-relative path using forward slashes.")
    content: str | None = None
    created_at: float = 0.0
    updated_at: float = 0.0


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------


class ExecutionStep(BaseModel):
    """One entry of a run's append-only audit trail."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1)
    kind: StepKind
    payload: dict[str, Any] = Field(default_factory=dict)


class ToolExecutionRecord(BaseModel):
    """Outcome of a single tool invocation. Never reopened once final."""

    model_config = ConfigDict(frozen=True)

    step: int = Field(..., ge=1, description="Tool-call ordinal within the run.")
    call_id: str
    tool_id: str
    input: dict[str, Any] = Field(default_factory=dict)
    output: dict[str, Any] | None = None
    error: str | None = None
    status: ToolStatus


class RunResult(BaseModel):
    """Terminal outcome of one executor run."""

    status: RunStatus
    text: str = Field(default="", description="Assistant text of every turn, joined by blank lines.")
    records: list[ToolExecutionRecord] = Field(default_factory=list)
    steps: list[ExecutionStep] = Field(default_factory=list)
    transcript: list[dict[str, Any]] = Field(default_factory=list)
    failure_reason: FailureReason | None = None
    error: str | None = None

    @property
    def tool_calls(self) -> int:
        return len(self.records)


# ---------------------------------------------------------------------------
# Provider stream events (consumed by the executor)
# ---------------------------------------------------------------------------


class TextDelta(BaseModel):
    type: Literal["text-delta"] = "text-delta"
    text: str


class ToolCallRequest(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_name: str
    input: dict[str, Any] = Field(default_factory=dict)
    call_id: str | None = None
    input_error: str | None = Field(
        default=None, description="Set when the provider could not decode the arguments."
    )


class ToolCallResult(BaseModel):
    """A result for a call the provider executed on its own side."""

    type: Literal["tool-result"] = "tool-result"
    tool_name: str
    output: dict[str, Any] = Field(default_factory=dict)


ProviderEvent = Union[TextDelta, ToolCallRequest, ToolCallResult]


# ---------------------------------------------------------------------------
# Executor events (emitted by the executor)
# ---------------------------------------------------------------------------


class StepStarted(BaseModel):
    type: Literal["step-started"] = "step-started"
    turn: int


class TextChunk(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallStarted(BaseModel):
    type: Literal["tool-call-started"] = "tool-call-started"
    step: int
    call_id: str
    tool_id: str
    input: dict[str, Any] = Field(default_factory=dict)
    status: ToolStatus = ToolStatus.RUNNING


class ToolCallFinished(BaseModel):
    type: Literal["tool-call-finished"] = "tool-call-finished"
    record: ToolExecutionRecord


class RunFinished(BaseModel):
    type: Literal["run-finished"] = "run-finished"
    result: RunResult


ExecutorEvent = Union[StepStarted, TextChunk, ToolCallStarted, ToolCallFinished, RunFinished]
