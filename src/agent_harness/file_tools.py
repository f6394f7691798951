# file_tools.py
# Built-in file management tools. Each handler talks to the workspace
# collaborator only; none of them touch the host file system directly.

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from agent_harness.models import FileRecord, ToolCategory
from agent_harness.tools import ToolContext, ToolDefinition, ToolOutput, fail, ok
from agent_harness.workspace import new_record


# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------


class ReadFileInput(BaseModel):
    path: str = Field(
        ..., description='Relative path from the project root, e.g. "notes.md" or "docs/readme.md".'
    )


class WriteFileInput(BaseModel):
    path: str = Field(..., description="Path of the existing file to update.")
    content: str = Field(..., description="New content. Replaces the whole file.")


class CreateFileInput(BaseModel):
    name: str = Field(..., description='File name including extension, e.g. "notes.md".')
    path: str = Field(default="", description="Parent folder path. Leave empty for the root.")
    content: str = Field(default="", description="Initial file content.")


class CreateFolderInput(BaseModel):
    name: str = Field(..., description='Folder name, e.g. "docs".')
    path: str = Field(default="", description="Parent folder path. Leave empty for the root.")


class ListFilesInput(BaseModel):
    path: str = Field(default="", description="Folder to list. Leave empty for the root.")
    recursive: bool = Field(default=False, description="Include everything below the folder.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parent_folder(ctx: ToolContext, path: str) -> FileRecord | None | str:
    """Return the parent folder record, None for the root, or an error string."""
    if not path:
        return None
    parent = ctx.workspace.find_by_path(path)
    if parent is None or parent.type != "folder":
        return f"Parent folder not found: {path}"
    return parent


def _describe(record: FileRecord) -> dict:
    return {
        "name": record.name,
        "path": record.path,
        "type": record.type,
        "size": len(record.content or ""),
        "modified": datetime.fromtimestamp(record.updated_at, timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def read_file(ctx: ToolContext, args: ReadFileInput) -> ToolOutput:
    record = ctx.workspace.find_by_path(args.path)
    if record is None or record.type != "file":
        return fail(f"File not found: {args.path}. Use list_files to see available files.")
    content = record.content or ""
    return ok(path=record.path, content=content, size=len(content), lines=len(content.split("\n")))


def write_file(ctx: ToolContext, args: WriteFileInput) -> ToolOutput:
    with ctx.workspace.lock:
        record = ctx.workspace.find_by_path(args.path)
        if record is None or record.type != "file":
            return fail(f"File not found: {args.path}. Use create_file to create a new file.")
        ctx.workspace.update(record.id, {"content": args.content})
    return ok(
        path=record.path,
        bytes_written=len(args.content),
        message=f"Successfully updated {record.path}",
    )


def _invalid_name(name: str) -> str | None:
    if not name.strip():
        return "Name cannot be empty."
    if "/" in name or "\\" in name or name in (".", ".."):
        return f"Invalid name: {name!r}. Pass the parent folder in path, not in name."
    return None


def _create(ctx: ToolContext, name: str, path: str, type: str, content: str | None) -> ToolOutput:
    error = _invalid_name(name)
    if error:
        return fail(error)
    with ctx.workspace.lock:
        parent = _parent_folder(ctx, path)
        if isinstance(parent, str):
            return fail(parent)
        record = new_record(name, type, parent, content)
        if ctx.workspace.find_by_path(record.path) is not None:
            hint = " Use write_file to update it." if type == "file" else ""
            return fail(f"{type.capitalize()} already exists: {record.path}.{hint}")
        ctx.workspace.create(record)
        verified = ctx.workspace.find_by_path(record.path) is not None
    return ok(path=record.path, name=name, verified=verified)


def create_file(ctx: ToolContext, args: CreateFileInput) -> ToolOutput:
    result = _create(ctx, args.name, args.path, "file", args.content)
    if result["success"]:
        result.update(
            size=len(args.content), message=f"Successfully created file: {result['path']}"
        )
    return result


def create_folder(ctx: ToolContext, args: CreateFolderInput) -> ToolOutput:
    result = _create(ctx, args.name, args.path, "folder", None)
    if result["success"]:
        result["message"] = f"Successfully created folder: {args.name} at {result['path']}"
    return result


def list_files(ctx: ToolContext, args: ListFilesInput) -> ToolOutput:
    if args.path:
        folder = ctx.workspace.find_by_path(args.path)
        if folder is None or folder.type != "folder":
            return fail(f"Folder not found: {args.path}")
    files = [_describe(r) for r in ctx.workspace.list(args.path, args.recursive)]
    folders = sum(1 for f in files if f["type"] == "folder")
    return ok(
        files=files,
        total_count=len(files),
        folders=folders,
        regular_files=len(files) - folders,
    )


FILE_TOOLS = [
    ToolDefinition(
        id="read_file",
        name="Read File",
        description="Read contents of files in the project",
        category=ToolCategory.FILE,
        input_model=ReadFileInput,
        handler=read_file,
        default_enabled=True,
        instructions=(
            "Read the contents of a file from the current project. Use this when the "
            "user asks to view, read, or check file contents."
        ),
    ),
    ToolDefinition(
        id="write_file",
        name="Write File",
        description="Update existing files in the project",
        category=ToolCategory.FILE,
        input_model=WriteFileInput,
        handler=write_file,
        default_enabled=True,
        instructions=(
            "Write new content to an existing file. This replaces the entire file content."
        ),
    ),
    ToolDefinition(
        id="create_file",
        name="Create File",
        description="Create new files in the project",
        category=ToolCategory.FILE,
        input_model=CreateFileInput,
        handler=create_file,
        default_enabled=True,
        instructions="Create a new file with optional initial content.",
    ),
    ToolDefinition(
        id="create_folder",
        name="Create Folder",
        description="Create new folders/directories",
        category=ToolCategory.FILE,
        input_model=CreateFolderInput,
        handler=create_folder,
        default_enabled=True,
        instructions="Create a new folder in the project.",
    ),
    ToolDefinition(
        id="list_files",
        name="List Files",
        description="List files and folders in directories",
        category=ToolCategory.FILE,
        input_model=ListFilesInput,
        handler=list_files,
        default_enabled=True,
        instructions=(
            "List the files and folders in a directory. Use this to explore the project structure."
        ),
    ),
]
