"""
diff_parser.py

Turns concatenated `git diff` output (staged, unstaged and synthesized
untracked-file diffs) into FileChange -> Hunk -> Line records with old/new
line numbers on every line.

Parsing is best-effort per file: a segment without an `a/... b/...` header or
without any `@@` hunk is dropped, and a body line without a `+`, `-` or space
marker is skipped. Nothing here raises or logs; the result depends on the
input text only.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple, TypeVar

from diffviewer.domain.schemas.diff import FileChange, Hunk, Line, LineType

T = TypeVar("T")
R = TypeVar("R")

_FILE_BOUNDARY_RE = re.compile(r"^diff --git ", re.MULTILINE)
# renames only; greedy, so the last " b/" is the split point
_PATHS_RE = re.compile(r"a/(.+) b/(.+)")
# ASCII digits only
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$", re.ASCII)

_MARKERS = {
    "+": LineType.addition,
    "-": LineType.deletion,
    " ": LineType.context,
}


class HunkHeader(NamedTuple):
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str


def parse_hunk_header(line: str) -> Optional[HunkHeader]:
    """
    `@@ -10,5 +12 @@ def foo():` -> HunkHeader(10, 5, 12, 1, " def foo():")
    An omitted count means exactly one line.
    """
    m = _HUNK_HEADER_RE.match(line)
    if not m:
        return None
    old_start, old_count, new_start, new_count, section = m.groups()
    return HunkHeader(
        old_start=int(old_start),
        old_count=int(old_count) if old_count else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count else 1,
        section=section,
    )


def split_header_paths(first_line: str) -> Optional[Tuple[str, str]]:
    """
    `a/<old> b/<new>` -> (old, new).

    When the line reads `a/P b/P` the split that gives two equal paths wins,
    so a path containing " b/" is not mistaken for a rename.
    """
    line = first_line.rstrip("\r")
    if not line.startswith("a/"):
        return None

    body = line[2:]
    half, odd = divmod(len(body) - 3, 2)
    if half > 0 and not odd and body[half:half + 3] == " b/" and body[:half] == body[half + 3:]:
        return body[:half], body[:half]

    m = _PATHS_RE.fullmatch(line)
    if not m:
        return None
    return m.group(1), m.group(2)


def collect_successes(parse: Callable[[T], Optional[R]], items: Iterable[T]) -> List[R]:
    """Apply `parse` to each item and keep the results that are not None."""
    results: List[R] = []
    for item in items:
        parsed = parse(item)
        if parsed is not None:
            results.append(parsed)
    return results


@dataclass
class _HunkBuilder:
    header: str
    bounds: HunkHeader
    old_line: int
    new_line: int
    lines: List[Line] = field(default_factory=list)

    @classmethod
    def open(cls, header_line: str) -> Optional["_HunkBuilder"]:
        bounds = parse_hunk_header(header_line)
        if bounds is None:
            return None
        return cls(
            header=header_line,
            bounds=bounds,
            old_line=bounds.old_start,
            new_line=bounds.new_start,
        )

    def add(self, raw: str) -> None:
        kind = _MARKERS.get(raw[:1])
        if kind is None:
            # "\ No newline at end of file", blank separators, stray fragments
            return

        old_no: Optional[int] = None
        new_no: Optional[int] = None
        if kind is not LineType.addition:
            old_no = self.old_line
            self.old_line += 1
        if kind is not LineType.deletion:
            new_no = self.new_line
            self.new_line += 1

        self.lines.append(
            Line(type=kind, content=raw[1:], old_line_number=old_no, new_line_number=new_no)
        )

    def build(self) -> Hunk:
        return Hunk(
            old_start=self.bounds.old_start,
            old_line_count=self.bounds.old_count,
            new_start=self.bounds.new_start,
            new_line_count=self.bounds.new_count,
            header=self.header,
            lines=tuple(self.lines),
        )


def _count(hunks: Iterable[Hunk], kind: LineType) -> int:
    return sum(1 for h in hunks for ln in h.lines if ln.type is kind)


def parse_file_segment(segment: str) -> Optional[FileChange]:
    """
    Parse one file's diff, i.e. the text following a `diff --git ` marker.
    Returns None when the segment carries no usable hunks.
    """
    lines = segment.split("\n")

    paths = split_header_paths(lines[0])
    if paths is None:
        return None
    old_path, new_path = paths

    first_hunk = next((i for i, ln in enumerate(lines) if ln.startswith("@@")), None)
    if first_hunk is None:
        # metadata-only entries: binary files, mode changes, pure renames
        return None

    hunks: List[Hunk] = []
    current: Optional[_HunkBuilder] = None

    for raw in lines[first_hunk:]:
        if raw.startswith("@@"):
            if current is not None:
                hunks.append(current.build())
            current = _HunkBuilder.open(raw)
            continue

        if current is None:
            continue

        current.add(raw)

    if current is not None:
        hunks.append(current.build())

    if not hunks:
        return None

    return FileChange(
        path=new_path,
        old_path=old_path if old_path != new_path else None,
        additions=_count(hunks, LineType.addition),
        deletions=_count(hunks, LineType.deletion),
        hunks=tuple(hunks),
    )


def split_file_segments(diff_text: str) -> List[str]:
    """Split on `diff --git ` at the start of a line; empty pieces are dropped."""
    return [seg for seg in _FILE_BOUNDARY_RE.split(diff_text) if seg]


def parse_diff(diff_text: str) -> List[FileChange]:
    """Parse concatenated unified diffs into FileChange records, in input order."""
    if not diff_text or not diff_text.strip():
        return []
    return collect_successes(parse_file_segment, split_file_segments(diff_text))


def diff_stats(files: Iterable[FileChange]) -> dict:
    """Summary counts over parsed files."""
    files = list(files)
    return {
        "files": len(files),
        "additions": sum(f.additions for f in files),
        "deletions": sum(f.deletions for f in files),
    }
