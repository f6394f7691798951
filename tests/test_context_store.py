import pytest

from agent_harness.context_store import AGENT_DIR, ContextStore, boundary, split_blocks
from agent_harness.errors import InvalidCategoryError
from agent_harness.models import ContextCategory

from conftest import FIXED_TIME

MARKDOWN = "# Title\n\n* item with `code`\n> quote | pipe | table\n\n```py\nx = {'a': [1]}\n```\n<!-- c -->\r\n"

# ---------------------------------------------------------------------------
# Round-trip and not-found
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("category", list(ContextCategory))
def test_write_then_read_round_trips(store, category):
    store.write(category, MARKDOWN)
    assert store.read(category) == MARKDOWN


def test_write_accepts_raw_category_string(store):
    path = store.write("notes", "plain")
    assert path == store.directory / "notes.md"
    assert store.read(ContextCategory.NOTES) == "plain"


def test_write_replaces_previous_content(store):
    store.write("tasks", "first")
    store.write("tasks", "second")
    assert store.read("tasks") == "second"


def test_read_missing_note_is_none_not_empty(store):
    assert store.read("research") is None


def test_read_empty_note_is_empty_string(store):
    store.write("research", "")
    assert store.read("research") == ""


# ---------------------------------------------------------------------------
# Append
# ---------------------------------------------------------------------------


def test_append_preserves_history_in_order(store):
    store.write("architecture", "A block\n")
    store.write_append("architecture", "B block")
    text = store.read("architecture")
    assert text == "A block\n" + boundary(FIXED_TIME) + "B block"
    assert text.index("A block") < text.index("B block")


def test_append_blocks_can_be_split_back(store):
    store.write("notes", "one")
    store.write_append("notes", "two")
    store.write_append("notes", "three")
    assert split_blocks(store.read("notes")) == ["one", "two", "three"]


def test_append_to_missing_note_writes_block_alone(store):
    store.write_append("tasks", "only")
    assert store.read("tasks") == "only"


def test_append_keeps_whitespace_only_content(store):
    store.write("notes", "\n\n")
    store.write_append("notes", "B")
    assert store.read("notes") == "\n\n" + boundary(FIXED_TIME) + "B"


def test_boundary_is_visible_markdown():
    text = boundary(FIXED_TIME)
    assert "\n---\n" in text
    assert "2025-03-01T12:30:00+00:00" in text


# ---------------------------------------------------------------------------
# Category validation
# ---------------------------------------------------------------------------


def test_bogus_category_rejected_before_io(tmp_path):
    store = ContextStore(tmp_path)
    with pytest.raises(InvalidCategoryError, match="bogus"):
        store.write("bogus", "x")
    with pytest.raises(InvalidCategoryError):
        store.write_append("bogus", "x")
    assert not (tmp_path / AGENT_DIR).exists()


def test_invalid_category_is_a_value_error(store):
    with pytest.raises(ValueError):
        store.read("Progress")


# ---------------------------------------------------------------------------
# Listing, progress, initialize
# ---------------------------------------------------------------------------


def test_list_reports_every_category(store):
    store.write("progress", "p")
    listing = store.list()
    assert set(listing) == set(ContextCategory)
    assert listing[ContextCategory.PROGRESS] is True
    assert listing[ContextCategory.NOTES] is False


def test_log_progress_always_appends(store):
    store.write("progress", "earlier entry")
    store.log_progress(
        "Set up the docs folder",
        achievements=["created docs/"],
        next_steps=["write readme"],
    )
    text = store.read("progress")
    first, second = split_blocks(text)
    assert first == "earlier entry"
    assert second.startswith("## March 01, 2025 12:30 UTC\n\nSet up the docs folder")
    assert "**Achievements:**\n- created docs/" in second
    assert "**Next Steps:**\n- write readme" in second
    assert "Blockers" not in second


def test_initialize_creates_layout_and_keeps_existing_readme(store):
    store.initialize()
    assert (store.directory / "README.md").is_file()
    assert (store.directory / "research").is_dir()
    assert (store.directory / "sessions").is_dir()

    (store.directory / "README.md").write_text("custom", encoding="utf-8")
    store.initialize()
    assert (store.directory / "README.md").read_text(encoding="utf-8") == "custom"
