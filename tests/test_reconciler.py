"""Tests for the reconciler: write/skip/delete decisions and directory planning."""

import pytest

from memos_sync.errors import ConfigurationError
from memos_sync.models import NormalizedEntry
from memos_sync.sync.reconciler import LocalState, reconcile, should_skip_note


def note(path, updated=1700000000, content=b"body"):
    return NormalizedEntry(f"memos/{path}", content, updated)


def attachment(path, content=b"bin"):
    return NormalizedEntry(f"resources/{path}", content, None)


BOTH_ROOTS = LocalState(folders=["memos", "resources"])


class TestNoteWatermark:

    def test_no_watermark_always_writes(self):
        plan = reconcile("Memos Sync", [note("abc.md")], [], BOTH_ROOTS, watermark=None)
        assert plan.write_paths == ["memos/abc.md"]
        assert plan.skipped_writes == []

    def test_watermark_after_update_skips(self):
        plan = reconcile("Memos Sync", [note("abc.md", updated=1700000000)], [], BOTH_ROOTS,
                         watermark=1700000000001)
        assert plan.skipped_writes == ["memos/abc.md"]
        assert plan.write_paths == []

    def test_watermark_equal_to_update_writes(self):
        entry = note("abc.md", updated=1700000000)
        assert should_skip_note(entry, 1700000000000) is False

    def test_watermark_before_update_writes(self):
        plan = reconcile("Memos Sync", [note("abc.md", updated=1700000000)], [], BOTH_ROOTS,
                         watermark=1600000000000)
        assert plan.write_paths == ["memos/abc.md"]

    def test_missing_update_time_always_writes(self):
        plan = reconcile("Memos Sync", [note("abc.md", updated=None)], [], BOTH_ROOTS,
                         watermark=1900000000000)
        assert plan.write_paths == ["memos/abc.md"]

    def test_skipped_note_is_retained(self):
        local = LocalState(files=["memos/abc.md"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [note("abc.md")], [], local, watermark=1900000000000)
        assert plan.deletes == []


class TestAttachments:

    def test_existing_attachment_never_rewritten(self):
        local = LocalState(files=["resources/pic.png"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [], [attachment("pic.png", b"changed")], local)
        assert plan.attachments.writes == []
        assert plan.attachments.skipped_writes == ["resources/pic.png"]
        assert plan.deletes == []

    def test_new_attachment_written(self):
        plan = reconcile("Memos Sync", [], [attachment("pic.png")], BOTH_ROOTS)
        assert plan.attachments.write_paths == ["resources/pic.png"]

    def test_missing_content_skipped_without_error(self):
        plan = reconcile("Memos Sync", [], [attachment("broken.pdf", None)], BOTH_ROOTS)
        assert plan.attachments.writes == []
        assert plan.attachments.skipped_writes == ["resources/broken.pdf"]

    def test_missing_content_keeps_existing_file(self):
        local = LocalState(files=["resources/broken.pdf"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [], [attachment("broken.pdf", None)], local)
        assert plan.deletes == []

    def test_nested_directories_root_to_leaf(self):
        plan = reconcile("Memos Sync", [], [attachment("sub/dir/pic.png")], BOTH_ROOTS)
        assert plan.attachments.directories == ["resources/sub", "resources/sub/dir"]

    def test_existing_directories_not_recreated(self):
        local = LocalState(folders=["memos", "resources", "resources/sub"])
        plan = reconcile("Memos Sync", [], [attachment("sub/a.png"), attachment("sub/dir/b.png")], local)
        assert plan.attachments.directories == ["resources/sub/dir"]

    def test_missing_roots_planned_first(self):
        plan = reconcile("Memos Sync", [note("a.md")], [attachment("x/y.png")], LocalState())
        assert plan.notes.directories == ["memos"]
        assert plan.attachments.directories == ["resources", "resources/x"]


class TestDeletion:

    def test_stray_resource_deleted(self):
        local = LocalState(files=["resources/old.png"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [], [], local)
        assert plan.deletes == ["resources/old.png"]

    def test_archived_note_file_deleted(self):
        """A note that was archived remotely no longer appears in the normalized set."""
        local = LocalState(files=["memos/abc.md", "memos/keep.md"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [note("keep.md")], [], local)
        assert plan.deletes == ["memos/abc.md"]

    def test_nested_stray_files_deleted_once(self):
        local = LocalState(
            files=["resources/a/b/c.png", "resources/keep.png", "memos/sub/x.md", "memos/x.md"],
            folders=["memos", "memos/sub", "resources", "resources/a", "resources/a/b"],
        )
        plan = reconcile("Memos Sync", [note("x.md")], [attachment("keep.png")], local)
        assert sorted(plan.deletes) == ["memos/sub/x.md", "resources/a/b/c.png"]
        assert len(plan.deletes) == len(set(plan.deletes))

    def test_files_outside_collections_untouched(self):
        local = LocalState(files=["README.md", "memos_extra/x.md"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [], [], local)
        assert plan.deletes == []

    def test_collections_are_separate_namespaces(self):
        local = LocalState(files=["memos/pic.png"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [], [attachment("pic.png")], local)
        assert plan.notes.deletes == ["memos/pic.png"]
        assert plan.attachments.write_paths == ["resources/pic.png"]

    def test_no_path_both_written_and_deleted(self):
        local = LocalState(files=["memos/a.md", "memos/b.md", "resources/c.png"], folders=["memos", "resources"])
        plan = reconcile("Memos Sync", [note("a.md"), note("z.md")], [attachment("c.png"), attachment("d.png")], local)
        assert not set(plan.write_paths) & set(plan.deletes)


class TestValidation:

    @pytest.mark.parametrize("folder", ["", "   "])
    def test_empty_folder_rejected(self, folder):
        with pytest.raises(ConfigurationError):
            reconcile(folder, [note("a.md")], [], BOTH_ROOTS)


class TestLocalState:

    def test_from_listing_strips_base(self):
        local = LocalState.from_listing(
            "Memos Sync",
            ["Memos Sync/memos/a.md", "Other/b.md", "Memos Sync/resources/x/y.png"],
            ["Memos Sync/memos", "Memos Sync/resources/x"],
        )
        assert local.files == {"memos/a.md", "resources/x/y.png"}
        assert local.folders == {"memos", "resources/x"}
