# context_tools.py
# Built-in tools over the context store (.agent/ working memory).

from pydantic import BaseModel, Field

from agent_harness.context_store import AGENT_DIR
from agent_harness.models import ContextCategory, ToolCategory
from agent_harness.tools import ToolContext, ToolDefinition, ToolOutput, ok

CATEGORY_HELP = """\
Categories:
- architecture: Project structure, tech stack, design patterns
- progress: What's been accomplished, current status
- research: Analysis findings, documentation notes
- tasks: Task planning and tracking
- notes: General notes and observations"""


class WriteContextNoteInput(BaseModel):
    category: ContextCategory = Field(..., description="Category of the note.")
    title: str = Field(..., description="Brief title for the note.")
    content: str = Field(..., description="The note content. Markdown is supported.")
    append: bool = Field(
        default=False, description="Append to the existing note instead of replacing it."
    )


class ReadContextNoteInput(BaseModel):
    category: ContextCategory = Field(..., description="Category of the note to read.")


class ListContextNotesInput(BaseModel):
    pass


class LogProgressInput(BaseModel):
    summary: str = Field(..., description="Brief summary of current progress.")
    achievements: list[str] | None = Field(default=None, description="Things accomplished.")
    next_steps: list[str] | None = Field(default=None, description="Next steps to take.")
    blockers: list[str] | None = Field(default=None, description="Blockers or issues hit.")


def _location(category: ContextCategory) -> str:
    return f"{AGENT_DIR}/{category.value}.md"


def write_context_note(ctx: ToolContext, args: WriteContextNoteInput) -> ToolOutput:
    block = f"# {args.title}\n\n{args.content}"
    if args.append:
        ctx.context_store.write_append(args.category, block)
    else:
        ctx.context_store.write(args.category, block)
    return ok(
        message=f"Context note saved to {args.category.value}.md",
        category=args.category.value,
        title=args.title,
        append=args.append,
        location=_location(args.category),
    )


def read_context_note(ctx: ToolContext, args: ReadContextNoteInput) -> ToolOutput:
    content = ctx.context_store.read(args.category)
    if content is None:
        return ok(
            found=False,
            message=f"No {args.category.value} note found. This category hasn't been used yet.",
            category=args.category.value,
            location=_location(args.category),
        )
    return ok(
        found=True,
        category=args.category.value,
        content=content,
        lines=len(content.split("\n")),
        size=len(content),
        location=_location(args.category),
    )


def list_context_notes(ctx: ToolContext, args: ListContextNotesInput) -> ToolOutput:
    notes = ctx.context_store.list()
    available = [c.value for c, exists in notes.items() if exists]
    missing = [c.value for c, exists in notes.items() if not exists]
    if available:
        message = f"Found {len(available)} context note(s): {', '.join(available)}"
    else:
        message = "No context notes found yet. Start saving information with write_context_note."
    return ok(
        notes={c.value: exists for c, exists in notes.items()},
        available=available,
        not_available=missing,
        total_available=len(available),
        total_categories=len(notes),
        message=message,
        location=f"{AGENT_DIR}/",
    )


def log_progress(ctx: ToolContext, args: LogProgressInput) -> ToolOutput:
    ctx.context_store.log_progress(
        args.summary,
        achievements=args.achievements,
        next_steps=args.next_steps,
        blockers=args.blockers,
    )
    return ok(
        message="Progress logged successfully",
        summary=args.summary,
        items_logged={
            "achievements": len(args.achievements or []),
            "next_steps": len(args.next_steps or []),
            "blockers": len(args.blockers or []),
        },
        location=_location(ContextCategory.PROGRESS),
    )


CONTEXT_TOOLS = [
    ToolDefinition(
        id="write_context_note",
        name="Write Context Note",
        description="Save information to agent working memory",
        category=ToolCategory.CONTEXT,
        input_model=WriteContextNoteInput,
        handler=write_context_note,
        instructions=(
            "Save important information to your working memory. Notes are kept in the "
            f"{AGENT_DIR}/ folder and persist across sessions. Use this whenever you learn "
            "something that should be remembered later.\n\n" + CATEGORY_HELP
        ),
    ),
    ToolDefinition(
        id="read_context_note",
        name="Read Context Note",
        description="Read saved context from previous sessions",
        category=ToolCategory.CONTEXT,
        input_model=ReadContextNoteInput,
        handler=read_context_note,
        instructions=(
            "Read a previously saved context note. Use this at the start of a session to "
            "recall what you learned before."
        ),
    ),
    ToolDefinition(
        id="list_context_notes",
        name="List Context Notes",
        description="See available context notes",
        category=ToolCategory.CONTEXT,
        input_model=ListContextNotesInput,
        handler=list_context_notes,
        instructions="List which context note categories have saved content.",
    ),
    ToolDefinition(
        id="log_progress",
        name="Log Progress",
        description="Track progress and achievements",
        category=ToolCategory.CONTEXT,
        input_model=LogProgressInput,
        handler=log_progress,
        instructions=(
            "Log progress for the current work session: what was accomplished, what is "
            "next, and any blockers. Entries are always appended to progress.md."
        ),
    ),
]
