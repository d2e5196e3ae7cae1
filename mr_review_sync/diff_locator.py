"""Unified diff hunk parser and line locator for positional MR comments."""

import re
from dataclasses import dataclass
from typing import Literal

HUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

LineKind = Literal["added", "removed", "context"]


@dataclass(frozen=True)
class DiffLine:
    """A single line from a hunk body.

    Attributes:
        kind: "added" (+), "removed" (-) or "context" (anything else).
        content: Line content without the diff prefix.
    """

    kind: LineKind
    content: str


@dataclass(frozen=True)
class Hunk:
    """A contiguous diff segment with its header start lines."""

    old_start: int
    new_start: int
    old_count: int | None
    new_count: int | None
    lines: tuple[DiffLine, ...]


@dataclass(frozen=True)
class LinePosition:
    """Anchor GitLab needs to attach a comment to a rendered diff line.

    old_line is None for added lines, which have no old-file counterpart.
    """

    old_line: int | None
    new_line: int


def _classify(raw_line: str) -> DiffLine:
    if raw_line.startswith("+"):
        return DiffLine(kind="added", content=raw_line[1:])
    if raw_line.startswith("-"):
        return DiffLine(kind="removed", content=raw_line[1:])
    return DiffLine(kind="context", content=raw_line[1:])


def _optional_int(value: str | None) -> int | None:
    return int(value) if value is not None else None


def parse_hunks(diff_text: str) -> list[Hunk]:
    """Split a single-file unified diff into hunks.

    Lines before the first header are ignored. A line starting with "@@"
    that does not match the header grammar starts a hunk that is skipped
    entirely; parsing resumes at the next valid header.

    Args:
        diff_text: Unified diff body for one file. May be empty.

    Returns:
        List of Hunk objects in diff order.
    """
    if not diff_text:
        return []

    hunks: list[Hunk] = []
    header: re.Match[str] | None = None
    body: list[DiffLine] = []

    def flush() -> None:
        if header is not None:
            hunks.append(
                Hunk(
                    old_start=int(header.group(1)),
                    new_start=int(header.group(3)),
                    old_count=_optional_int(header.group(2)),
                    new_count=_optional_int(header.group(4)),
                    lines=tuple(body),
                )
            )

    for raw_line in diff_text.split("\n"):
        if raw_line.startswith("@@"):
            flush()
            header = HUNK_HEADER_PATTERN.match(raw_line)
            body = []
            continue

        if header is None:
            continue

        # Skip "\ No newline at end of file" and trailing blank lines
        if not raw_line or raw_line.startswith("\\"):
            continue

        body.append(_classify(raw_line))

    flush()
    return hunks


def _locate_in_hunk(hunk: Hunk, target_new_line: int) -> LinePosition | None:
    old_line = hunk.old_start
    new_line = hunk.new_start

    for line in hunk.lines:
        if line.kind == "removed":
            old_line += 1
        elif line.kind == "added":
            if new_line == target_new_line:
                return LinePosition(old_line=None, new_line=new_line)
            new_line += 1
        else:
            if new_line == target_new_line:
                return LinePosition(old_line=old_line, new_line=new_line)
            old_line += 1
            new_line += 1

        # New-side numbers only ascend inside a well-formed hunk
        if new_line > target_new_line:
            break

    return None


def locate_line(diff_text: str, target_new_line: int) -> LinePosition | None:
    """Find the old/new line pair for a new-file line inside a diff.

    Each hunk is scanned independently and the first match wins. Lines in
    the gaps between hunks are not part of the rendered diff and yield None,
    which tells the caller to post a plain note instead.

    Args:
        diff_text: Unified diff body for one file.
        target_new_line: 1-based line number in the post-change file.

    Returns:
        LinePosition for the matching line, or None if it is not displayed.
    """
    if target_new_line < 1:
        return None

    for hunk in parse_hunks(diff_text):
        position = _locate_in_hunk(hunk, target_new_line)
        if position is not None:
            return position
    return None


def get_valid_comment_lines(diff_text: str) -> set[int]:
    """Get new-file line numbers that are visible in the diff.

    Args:
        diff_text: Unified diff body for one file.

    Returns:
        Set of line numbers from added and context lines.
    """
    valid: set[int] = set()
    for hunk in parse_hunks(diff_text):
        new_line = hunk.new_start
        for line in hunk.lines:
            if line.kind == "removed":
                continue
            valid.add(new_line)
            new_line += 1
    return valid


def count_changes(diff_text: str) -> tuple[int, int]:
    """Count added and removed lines across all hunks."""
    additions = 0
    deletions = 0
    for hunk in parse_hunks(diff_text):
        for line in hunk.lines:
            if line.kind == "added":
                additions += 1
            elif line.kind == "removed":
                deletions += 1
    return additions, deletions
