"""
Unit tests for the utils module.
"""

from datetime import datetime, timezone

from memos_sync.utils import ancestor_dirs, format_timestamp_name, join_path, parse_remote_time


class TestParseRemoteTime:
    """Tests for parse_remote_time function."""

    def test_seconds_timestamp(self):
        assert parse_remote_time(1704672000) == 1704672000

    def test_seconds_string(self):
        assert parse_remote_time("1704672000") == 1704672000

    def test_milliseconds_timestamp(self):
        """Millisecond values are converted to seconds."""
        assert parse_remote_time(1704672000000) == 1704672000

    def test_edge_case_large_seconds(self):
        """Year 2286, but still seconds."""
        assert parse_remote_time("9999999999") == 9999999999

    def test_rfc3339(self):
        expected = int(datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc).timestamp())
        assert parse_remote_time("2023-11-14T22:13:20Z") == expected

    def test_missing_or_garbage(self):
        assert parse_remote_time(None) is None
        assert parse_remote_time("") is None
        assert parse_remote_time("yesterday") is None
        assert parse_remote_time(True) is None


class TestFormatTimestampName:
    """Names use local time and no zero padding."""

    def test_no_zero_padding(self):
        ts = datetime(2023, 1, 5, 9, 7).timestamp()
        assert format_timestamp_name(ts) == "2023-1-5-9-7"

    def test_two_digit_fields(self):
        ts = datetime(2023, 11, 25, 23, 45).timestamp()
        assert format_timestamp_name(ts) == "2023-11-25-23-45"

    def test_missing_timestamp_uses_now(self):
        now = datetime(2024, 2, 29, 0, 0).timestamp()
        assert format_timestamp_name(None, now=now) == "2024-2-29-0-0"


class TestPaths:

    def test_ancestor_dirs_root_first(self):
        assert ancestor_dirs("resources/sub/dir/pic.png") == ["resources", "resources/sub", "resources/sub/dir"]

    def test_ancestor_dirs_flat(self):
        assert ancestor_dirs("memos/abc.md") == ["memos"]
        assert ancestor_dirs("abc.md") == []

    def test_join_path(self):
        assert join_path("Memos Sync/", "memos", "abc.md") == "Memos Sync/memos/abc.md"
        assert join_path("", "resources", "a/b.png") == "resources/a/b.png"
