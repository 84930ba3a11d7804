"""
Tests for diff_parser.py
"""
import json

import pytest
from pydantic import ValidationError

from diffviewer.domain.schemas.diff import FileChange, Line, LineType
from diffviewer.tools.diff_parser import (
    collect_successes,
    diff_stats,
    parse_diff,
    parse_file_segment,
    parse_hunk_header,
    split_file_segments,
    split_header_paths,
)


SIMPLE_DIFF = """diff --git a/foo.txt b/foo.txt
index e69de29..0000000 100644
--- a/foo.txt
+++ b/foo.txt
@@ -1,2 +1,3 @@
 keep
-old
+new1
+new2
"""


def _single_file_diff(path: str, body: str, header: str = "@@ -1,3 +1,3 @@") -> str:
    return (
        f"diff --git a/{path} b/{path}\n"
        f"index 1111111..2222222 100644\n"
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        f"{header}\n"
        f"{body}"
    )


class TestParseHunkHeader:
    """Hunk header parsing"""

    def test_full_header(self):
        h = parse_hunk_header("@@ -3,7 +4,9 @@ def main():")
        assert h is not None
        assert (h.old_start, h.old_count, h.new_start, h.new_count) == (3, 7, 4, 9)
        assert h.section == " def main():"

    def test_omitted_new_count_defaults_to_one(self):
        h = parse_hunk_header("@@ -10,5 +12 @@")
        assert h is not None
        assert (h.old_start, h.old_count, h.new_start, h.new_count) == (10, 5, 12, 1)

    def test_omitted_old_count_defaults_to_one(self):
        h = parse_hunk_header("@@ -7 +7,2 @@")
        assert h is not None
        assert (h.old_count, h.new_count) == (1, 2)

    def test_zero_counts(self):
        h = parse_hunk_header("@@ -0,0 +1,4 @@")
        assert h is not None
        assert (h.old_start, h.old_count) == (0, 0)

    def test_not_a_header(self):
        assert parse_hunk_header("@@ garbage @@") is None
        assert parse_hunk_header(" context") is None

    def test_non_ascii_digits_are_rejected(self):
        assert parse_hunk_header("@@ -\u0661 +\u0661 @@") is None
        assert parse_hunk_header("@@ -1,\uff12 +1 @@") is None

    def test_hunk_with_non_ascii_digits_is_dropped(self):
        text = "diff --git a/x b/x\n@@ -\u0661 +\u0661 @@\n+a\n"
        assert parse_diff(text) == []


class TestParseDiff:
    """End-to-end parsing of concatenated diffs"""

    def test_concrete_scenario(self):
        files = parse_diff(SIMPLE_DIFF)

        assert len(files) == 1
        f = files[0]
        assert f.path == "foo.txt"
        assert f.old_path is None
        assert f.additions == 2
        assert f.deletions == 1
        assert len(f.hunks) == 1

        lines = f.hunks[0].lines
        assert [(ln.type, ln.content, ln.old_line_number, ln.new_line_number) for ln in lines] == [
            (LineType.context, "keep", 1, 1),
            (LineType.deletion, "old", 2, None),
            (LineType.addition, "new1", None, 2),
            (LineType.addition, "new2", None, 3),
        ]

    def test_hunk_fields(self):
        hunk = parse_diff(SIMPLE_DIFF)[0].hunks[0]
        assert hunk.old_start == 1
        assert hunk.old_line_count == 2
        assert hunk.new_start == 1
        assert hunk.new_line_count == 3
        assert hunk.header == "@@ -1,2 +1,3 @@"

    def test_empty_and_whitespace_input(self):
        assert parse_diff("") == []
        assert parse_diff("   \n\n\t\n") == []

    def test_context_only(self):
        text = _single_file_diff("a.py", " one\n two\n three\n", header="@@ -5,3 +8,3 @@")
        f = parse_diff(text)[0]

        assert f.additions == 0
        assert f.deletions == 0
        lines = f.hunks[0].lines
        assert [ln.old_line_number for ln in lines] == [5, 6, 7]
        assert [ln.new_line_number for ln in lines] == [8, 9, 10]
        assert all(ln.type is LineType.context for ln in lines)

    def test_addition_only_hunk(self):
        text = _single_file_diff("a.py", "+x\n+y\n+z\n", header="@@ -0,0 +1,3 @@")
        f = parse_diff(text)[0]

        lines = f.hunks[0].lines
        assert f.additions == 3
        assert f.deletions == 0
        assert all(ln.old_line_number is None for ln in lines)
        assert [ln.new_line_number for ln in lines] == [1, 2, 3]

    def test_deletion_only_hunk(self):
        text = _single_file_diff("a.py", "-x\n-y\n", header="@@ -4,2 +3,0 @@")
        f = parse_diff(text)[0]

        lines = f.hunks[0].lines
        assert f.deletions == 2
        assert f.additions == 0
        assert all(ln.new_line_number is None for ln in lines)
        assert [ln.old_line_number for ln in lines] == [4, 5]

    def test_multiple_files_keep_input_order(self):
        text = "\n".join(
            _single_file_diff(name, " same\n+added\n", header="@@ -1 +1,2 @@")
            for name in ("b.txt", "a.txt", "c.txt")
        )
        files = parse_diff(text)
        assert [f.path for f in files] == ["b.txt", "a.txt", "c.txt"]

    def test_multiple_hunks_reset_counters(self):
        body = " a\n-b\n+B\n@@ -20,2 +20,3 @@ class Foo:\n x\n+y\n z\n"
        f = parse_diff(_single_file_diff("m.py", body, header="@@ -1,2 +1,2 @@"))[0]

        assert len(f.hunks) == 2
        second = f.hunks[1]
        assert second.header == "@@ -20,2 +20,3 @@ class Foo:"
        assert [ln.old_line_number for ln in second.lines] == [20, None, 21]
        assert [ln.new_line_number for ln in second.lines] == [20, 21, 22]
        assert f.additions == 2
        assert f.deletions == 1

    def test_rename_sets_old_path(self):
        text = (
            "diff --git a/old name.txt b/new name.txt\n"
            "similarity index 90%\n"
            "rename from old name.txt\n"
            "rename to new name.txt\n"
            "--- a/old name.txt\n"
            "+++ b/new name.txt\n"
            "@@ -1 +1 @@\n"
            "-hello\n"
            "+hello world\n"
        )
        f = parse_diff(text)[0]
        assert f.path == "new name.txt"
        assert f.old_path == "old name.txt"
        assert f.is_rename

    def test_new_file_against_dev_null(self):
        text = (
            "diff --git a/new.txt b/new.txt\n"
            "new file mode 100644\n"
            "index 0000000..0000000\n"
            "--- /dev/null\n"
            "+++ b/new.txt\n"
            "@@ -0,0 +1,2 @@\n"
            "+first\n"
            "+second\n"
        )
        f = parse_diff(text)[0]
        assert f.path == "new.txt"
        assert f.old_path is None
        assert f.additions == 2
        assert f.hunks[0].old_start == 0

    def test_no_newline_marker_is_skipped(self):
        body = "-last\n\\ No newline at end of file\n+last\n\\ No newline at end of file\n"
        f = parse_diff(_single_file_diff("n.txt", body, header="@@ -1 +1 @@"))[0]

        contents = [ln.content for ln in f.hunks[0].lines]
        assert contents == ["last", "last"]
        assert f.hunks[0].lines[1].new_line_number == 1

    def test_marker_only_lines_have_empty_content(self):
        f = parse_diff(_single_file_diff("e.txt", "+\n \n", header="@@ -1 +1,2 @@"))[0]
        lines = f.hunks[0].lines
        assert [ln.content for ln in lines] == ["", ""]
        assert lines[1].old_line_number == 1

    def test_segment_without_hunk_is_dropped(self):
        binary = (
            "diff --git a/img.png b/img.png\n"
            "index 1234567..89abcde 100644\n"
            "Binary files a/img.png and b/img.png differ\n"
        )
        files = parse_diff(binary + SIMPLE_DIFF)
        assert [f.path for f in files] == ["foo.txt"]

    def test_mode_change_only_is_dropped(self):
        text = "diff --git a/run.sh b/run.sh\nold mode 100644\nnew mode 100755\n"
        assert parse_diff(text) == []

    def test_malformed_header_is_dropped_not_fatal(self):
        broken = "diff --git nonsense-without-prefixes\n@@ -1 +1 @@\n+x\n"
        files = parse_diff(broken + SIMPLE_DIFF)
        assert [f.path for f in files] == ["foo.txt"]

    def test_unparseable_hunk_header_drops_its_lines(self):
        body = " a\n@@ broken @@\n+ignored\n@@ -9 +9 @@\n+kept\n"
        f = parse_diff(_single_file_diff("h.txt", body, header="@@ -1 +1 @@"))[0]

        assert len(f.hunks) == 2
        assert [ln.content for ln in f.hunks[1].lines] == ["kept"]
        assert f.additions == 1

    def test_file_whose_hunks_are_all_invalid_is_dropped(self):
        text = "diff --git a/x b/x\n@@ nope @@\n+a\n"
        assert parse_diff(text) == []

    def test_lines_without_marker_are_skipped(self):
        body = " a\ngarbage line\n+b\n"
        f = parse_diff(_single_file_diff("g.txt", body, header="@@ -1 +1,2 @@"))[0]
        assert [ln.content for ln in f.hunks[0].lines] == ["a", "b"]

    def test_same_path_containing_b_slash_is_not_a_rename(self):
        text = "diff --git a/dir b/x.txt b/dir b/x.txt\n@@ -1 +1 @@\n-a\n+b\n"
        f = parse_diff(text)[0]
        assert f.path == "dir b/x.txt"
        assert f.old_path is None

    def test_rename_with_b_slash_uses_last_split(self):
        text = "diff --git a/x b/y b/z\n@@ -1 +1 @@\n-a\n+b\n"
        f = parse_diff(text)[0]
        assert f.path == "z"
        assert f.old_path == "x b/y"

    def test_blank_separators_between_segments(self):
        text = "\n" + SIMPLE_DIFF + "\n\n" + SIMPLE_DIFF.replace("foo.txt", "bar.txt") + "\n"
        files = parse_diff(text)
        assert [f.path for f in files] == ["foo.txt", "bar.txt"]
        assert all(f.additions == 2 and f.deletions == 1 for f in files)

    def test_idempotent(self):
        assert parse_diff(SIMPLE_DIFF) == parse_diff(SIMPLE_DIFF)

    def test_counts_match_line_types(self):
        text = SIMPLE_DIFF + _single_file_diff("z.txt", " a\n-b\n-c\n+d\n", header="@@ -1,3 +1,2 @@")
        for f in parse_diff(text):
            all_lines = [ln for h in f.hunks for ln in h.lines]
            assert f.additions == sum(ln.type is LineType.addition for ln in all_lines)
            assert f.deletions == sum(ln.type is LineType.deletion for ln in all_lines)


class TestSerialization:
    """Output records as consumed by the UI"""

    def test_json_uses_camel_case_fields(self):
        f = parse_diff(SIMPLE_DIFF)[0]
        data = json.loads(f.model_dump_json(by_alias=True))

        assert set(data) == {"path", "oldPath", "additions", "deletions", "hunks"}
        hunk = data["hunks"][0]
        assert {"oldStart", "oldLineCount", "newStart", "newLineCount", "header", "lines"} <= set(hunk)
        assert hunk["lines"][1] == {
            "type": "deletion",
            "content": "old",
            "oldLineNumber": 2,
            "newLineNumber": None,
        }

    def test_records_are_immutable(self):
        f = parse_diff(SIMPLE_DIFF)[0]
        with pytest.raises(ValidationError):
            f.path = "other.txt"

    def test_line_rejects_inconsistent_numbers(self):
        with pytest.raises(ValidationError):
            Line(type=LineType.addition, content="x", old_line_number=1, new_line_number=1)
        with pytest.raises(ValidationError):
            Line(type=LineType.context, content="x", old_line_number=1)


class TestHelpers:
    def test_split_file_segments(self):
        segments = split_file_segments(SIMPLE_DIFF + SIMPLE_DIFF)
        assert len(segments) == 2
        assert all(s.startswith("a/foo.txt b/foo.txt") for s in segments)

    def test_split_ignores_marker_inside_line(self):
        text = SIMPLE_DIFF.replace("+new2", "+see diff --git a/x b/x")
        assert len(split_file_segments(text)) == 1

    def test_parse_file_segment_returns_none_on_bad_shape(self):
        assert parse_file_segment("not a header\n@@ -1 +1 @@\n+x") is None

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("a/foo.txt b/foo.txt", ("foo.txt", "foo.txt")),
            ("a/x b/y b/x b/y", ("x b/y", "x b/y")),
            ("a/old.txt b/new.txt", ("old.txt", "new.txt")),
            ("a/x b/y\r", ("x", "y")),
            ("x b/y", None),
            ("a/x", None),
        ],
    )
    def test_split_header_paths(self, line, expected):
        assert split_header_paths(line) == expected

    def test_collect_successes(self):
        assert collect_successes(lambda x: x * 2 if x % 2 else None, [1, 2, 3, 4]) == [2, 6]

    def test_diff_stats(self):
        files = parse_diff(SIMPLE_DIFF + SIMPLE_DIFF.replace("foo.txt", "bar.txt"))
        assert diff_stats(files) == {"files": 2, "additions": 4, "deletions": 2}

    def test_file_change_round_trips_from_aliases(self):
        f = parse_diff(SIMPLE_DIFF)[0]
        again = FileChange.model_validate(json.loads(f.model_dump_json(by_alias=True)))
        assert again == f
