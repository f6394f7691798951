# config.py
# Runtime settings from the environment and agent settings from JSON.

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from agent_harness.errors import ConfigError
from agent_harness.models import AgentConfig
from agent_harness.provider import OPENROUTER_BASE_URL

load_dotenv()

SETTINGS_VERSION = "1.0.0"
MAX_SUB_AGENTS = 3


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    """Process-wide settings for the harness."""

    api_key: str | None = field(default_factory=lambda: os.getenv("OPENROUTER_API_KEY"))
    base_url: str = field(default_factory=lambda: os.getenv("AGENT_BASE_URL", OPENROUTER_BASE_URL))
    max_steps: int = field(default_factory=lambda: _env_int("AGENT_MAX_STEPS", 10))
    tool_timeout: float = field(default_factory=lambda: _env_float("AGENT_TOOL_TIMEOUT", 30.0))
    delegation_timeout: float = field(
        default_factory=lambda: _env_float("AGENT_DELEGATION_TIMEOUT", 600.0)
    )
    max_delegation_depth: int = field(
        default_factory=lambda: _env_int("AGENT_MAX_DELEGATION_DEPTH", 2)
    )
    log_level: str = field(default_factory=lambda: os.getenv("AGENT_LOG_LEVEL", "WARNING"))

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls()
        if settings.max_steps < 1:
            raise ConfigError("AGENT_MAX_STEPS must be at least 1")
        if settings.max_delegation_depth < 0:
            raise ConfigError("AGENT_MAX_DELEGATION_DEPTH cannot be negative")
        return settings


# ---------------------------------------------------------------------------
# Agent settings file
# ---------------------------------------------------------------------------


class AgentSettings(BaseModel):
    """The orchestrator plus the sub-agents it may delegate to."""

    version: str = SETTINGS_VERSION
    orchestrator: AgentConfig | None = None
    sub_agents: list[AgentConfig] = Field(default_factory=list, max_length=MAX_SUB_AGENTS)


def load_agent_settings(path: str | Path) -> AgentSettings:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read agent settings {path}: {exc}") from exc
    try:
        return AgentSettings.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid agent settings in {path}:\n{exc}") from exc


def validate_agent_config(config: AgentConfig) -> None:
    """Reject configurations that cannot be run at all."""
    if not config.provider or not config.model:
        raise ConfigError(
            f"Agent {config.id!r} is not configured: provider and model are required."
        )
