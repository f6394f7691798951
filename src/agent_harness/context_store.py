# context_store.py
# Persistent, categorized agent memory under <project>/.agent/.
#
# One Markdown file per category. write() replaces, write_append() keeps the
# prior content verbatim and adds a delimited block below it. Reads of a
# missing note return None, never "".

import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from agent_harness.errors import InvalidCategoryError
from agent_harness.models import ContextCategory

logger = logging.getLogger(__name__)

AGENT_DIR = ".agent"
SUBDIRECTORIES = ("research", "sessions")

_BOUNDARY_RE = re.compile(r"\n\n---\n<!-- appended: [^>]*? -->\n\n")

README = """\
# Agent Working Directory

This folder is used by the agent to keep context and memory across sessions.

## Contents

- **architecture.md** - Project understanding and architectural notes
- **progress.md** - Session-by-session progress tracking
- **research.md** - Research findings and analysis
- **tasks.md** - Task planning and tracking
- **notes.md** - General notes and observations
- **research/** - Detailed research notes
- **sessions/** - Individual session logs

These files are managed by the agent. Manual edits work, but appended blocks
are separated by a `---` rule followed by an `appended:` marker comment, so
keep those lines intact.

The files stay in your project directory and never leave your machine unless
you share the project folder.
"""


def _read(path: Path) -> str:
    with open(path, "r", encoding="utf-8", newline="") as fh:
        return fh.read()


def _write(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(content)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_category(category: str | ContextCategory) -> ContextCategory:
    """Coerce a raw category to the enumeration, rejecting anything else."""
    if isinstance(category, ContextCategory):
        return category
    try:
        return ContextCategory(category)
    except ValueError:
        allowed = ", ".join(c.value for c in ContextCategory)
        raise InvalidCategoryError(
            f"Unknown context category {category!r}. Expected one of: {allowed}."
        ) from None


def boundary(timestamp: datetime) -> str:
    return f"\n\n---\n<!-- appended: {timestamp.isoformat(timespec='seconds')} -->\n\n"


def split_blocks(text: str) -> list[str]:
    """Split an appended note back into the blocks it was built from."""
    return _BOUNDARY_RE.split(text)


class ContextStore:
    """
    Category-keyed Markdown notes for one project.

    The clock is injectable so that append boundaries are deterministic in
    tests.
    """

    def __init__(self, project_root: str | Path, clock: Callable[[], datetime] = _utcnow) -> None:
        self._root = Path(project_root)
        self._dir = self._root / AGENT_DIR
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, category: str | ContextCategory) -> Path:
        return self._dir / f"{validate_category(category).value}.md"

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the .agent/ folder, its README and sub-directories if missing."""
        existed = self._dir.is_dir()
        self._dir.mkdir(parents=True, exist_ok=True)
        readme = self._dir / "README.md"
        if not readme.exists():
            readme.write_text(README, encoding="utf-8")
        for name in SUBDIRECTORIES:
            (self._dir / name).mkdir(exist_ok=True)
        logger.info(
            "%s agent folder at %s", "Opened existing" if existed else "Created", self._dir
        )

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def write(self, category: str | ContextCategory, content: str) -> Path:
        path = self.path_for(category)
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            _write(path, content)
        logger.debug("Replaced context note %s", path.name)
        return path

    def write_append(self, category: str | ContextCategory, content: str) -> Path:
        path = self.path_for(category)
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            existing = _read(path) if path.exists() else ""
            if existing:
                content = existing + boundary(self._clock()) + content
            _write(path, content)
        logger.debug("Appended to context note %s", path.name)
        return path

    def read(self, category: str | ContextCategory) -> str | None:
        path = self.path_for(category)
        if not path.is_file():
            return None
        return _read(path)

    def log_progress(
        self,
        summary: str,
        achievements: list[str] | None = None,
        next_steps: list[str] | None = None,
        blockers: list[str] | None = None,
    ) -> Path:
        """Append a structured entry to the progress note. Never replaces."""
        stamp = self._clock().strftime("%B %d, %Y %H:%M UTC")
        lines = [f"## {stamp}", "", summary]
        for heading, items in (
            ("Achievements", achievements),
            ("Next Steps", next_steps),
            ("Blockers", blockers),
        ):
            if items:
                lines += ["", f"**{heading}:**"]
                lines += [f"- {item}" for item in items]
        return self.write_append(ContextCategory.PROGRESS, "\n".join(lines) + "\n")

    # Defined last so the builtin ``list`` stays usable in annotations above.
    def list(self) -> dict[ContextCategory, bool]:
        return {c: (self._dir / f"{c.value}.md").is_file() for c in ContextCategory}
