"""Dispatch review comments to a merge request as discussions or notes.

Each comment is planned against the merge request change set: comments on
lines rendered in the diff become positional discussions, everything else
becomes a fallback note with a deep link to the file. All positions in one
run are anchored to the diff refs fetched once at the start.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from mr_review_sync.comments import ReviewComment, build_file_url, format_comment_body
from mr_review_sync.diff_locator import LinePosition, locate_line
from mr_review_sync.gitlab_client import GITLAB_ERRORS
from mr_review_sync.platform_protocol import (
    ChangedFile,
    MergeRequestContext,
    ReviewPlatform,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionalPlan:
    """Comment can be anchored inside the diff."""

    changed_file: ChangedFile
    line_position: LinePosition


@dataclass(frozen=True)
class FallbackPlan:
    """Comment refers to code outside the reviewed diff."""

    reason: str


@dataclass(frozen=True)
class PositionalPost:
    """Comment posted as an inline discussion at position."""

    comment: ReviewComment
    position: dict[str, Any]


@dataclass(frozen=True)
class FallbackNote:
    """Comment posted as a plain note with a file deep link."""

    comment: ReviewComment
    reason: str


@dataclass(frozen=True)
class Failed:
    """Comment could not be posted at all."""

    comment: ReviewComment
    error: str


DispatchResult = PositionalPost | FallbackNote | Failed


@dataclass
class SyncReport:
    """Outcome of one sync run."""

    results: list[DispatchResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def positional(self) -> int:
        return sum(1 for r in self.results if isinstance(r, PositionalPost))

    @property
    def fallback(self) -> int:
        return sum(1 for r in self.results if isinstance(r, FallbackNote))

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if isinstance(r, Failed))


def find_changed_file(changes: list[ChangedFile], path: str) -> ChangedFile | None:
    """Find a changed file by new path, then by old path for renames."""
    for changed_file in changes:
        if changed_file.new_path == path:
            return changed_file
    for changed_file in changes:
        if changed_file.old_path == path:
            return changed_file
    return None


def plan_comment(
    comment: ReviewComment, changes: list[ChangedFile]
) -> PositionalPlan | FallbackPlan:
    """Decide whether a comment is positional or a fallback note.

    Args:
        comment: Review comment to place.
        changes: Merge request change set.

    Returns:
        PositionalPlan if the line is rendered in the file's diff,
        FallbackPlan otherwise.
    """
    changed_file = find_changed_file(changes, comment.file)
    if changed_file is None:
        return FallbackPlan(reason="file not in MR changes")
    if not changed_file.diff:
        return FallbackPlan(reason="file has no textual diff")

    line_position = locate_line(changed_file.diff, comment.line)
    if line_position is None:
        return FallbackPlan(reason="line outside diff hunks")
    return PositionalPlan(changed_file=changed_file, line_position=line_position)


def build_position(
    plan: PositionalPlan, context: MergeRequestContext
) -> dict[str, Any]:
    """Build the GitLab discussion position for a positional plan."""
    diff_refs = context.diff_refs
    position: dict[str, Any] = {
        "base_sha": diff_refs.base_sha,
        "start_sha": diff_refs.start_sha,
        "head_sha": diff_refs.head_sha,
        "position_type": "text",
        "new_path": plan.changed_file.new_path,
        "old_path": plan.changed_file.old_path,
        "new_line": plan.line_position.new_line,
    }
    if plan.line_position.old_line is not None:
        position["old_line"] = plan.line_position.old_line
    return position


def dispatch_comment(
    platform: ReviewPlatform,
    mr_iid: int,
    comment: ReviewComment,
    changes: list[ChangedFile],
    context: MergeRequestContext,
    language: str = "vue",
) -> DispatchResult:
    """Post one comment, degrading to a fallback note when needed.

    GitLab and transport errors are captured in the returned result and
    never raised, so one bad comment cannot abort the rest of the run.

    Args:
        platform: Platform client to post through.
        mr_iid: Merge request internal ID.
        comment: Review comment to post.
        changes: Change set fetched at the start of the run.
        context: Merge request context with pinned diff refs.
        language: Fence language for suggestion blocks.

    Returns:
        PositionalPost, FallbackNote or Failed.
    """
    file_url = build_file_url(
        context.project_web_url, context.diff_refs.head_sha, comment.file, comment.line
    )
    plan = plan_comment(comment, changes)

    if isinstance(plan, PositionalPlan):
        position = build_position(plan, context)
        body = format_comment_body(comment, file_url, False, language)
        try:
            platform.create_discussion(mr_iid, body, position)
        except GITLAB_ERRORS as error:
            logger.warning(
                "Positional post failed for %s:%s, falling back: %s",
                comment.file,
                comment.line,
                error,
            )
            reason = f"positional post rejected: {error}"
        else:
            logger.info(
                "Posted positional comment: %s:%s", comment.file, comment.line
            )
            return PositionalPost(comment=comment, position=position)
    else:
        reason = plan.reason

    body = format_comment_body(comment, file_url, True, language)
    try:
        platform.create_note(mr_iid, body)
    except GITLAB_ERRORS as error:
        logger.error(
            "Fallback note failed for %s:%s: %s", comment.file, comment.line, error
        )
        return Failed(comment=comment, error=str(error))

    logger.info(
        "Posted fallback note for %s:%s (%s)", comment.file, comment.line, reason
    )
    return FallbackNote(comment=comment, reason=reason)


def build_summary(report: SyncReport) -> str:
    """Build the summary note posted after all comments."""
    status = (
        "Sync completed successfully."
        if report.failed == 0
        else f"Sync completed with {report.failed} failed comment(s)."
    )
    return (
        "### 🤖 Code Review Sync Summary\n"
        f"- **Total Issues Found:** {report.total}\n"
        f"- **Positional Comments:** {report.positional} ✅\n"
        f"- **Legacy Code Notes:** {report.fallback} ℹ️\n"
        f"- **Failed:** {report.failed}\n"
        f"- **Status:** {status}"
    )


def sync_comments(
    platform: ReviewPlatform,
    mr_iid: int,
    comments: list[ReviewComment],
    language: str = "vue",
) -> SyncReport:
    """Sync review comments into a merge request.

    Context and changes are fetched exactly once so that every positional
    comment references the same diff refs snapshot.

    Args:
        platform: Platform client.
        mr_iid: Merge request internal ID.
        comments: Review comments in posting order.
        language: Fence language for suggestion blocks.

    Returns:
        SyncReport with one result per comment.

    Raises:
        gitlab.exceptions.GitlabError: If the MR context or changes cannot
            be fetched.
        requests.exceptions.RequestException: On transport failures while
            fetching the MR context or changes.
    """
    context = platform.get_context(mr_iid)
    changes = platform.get_changes(mr_iid)

    report = SyncReport()
    for comment in comments:
        report.results.append(
            dispatch_comment(platform, mr_iid, comment, changes, context, language)
        )

    try:
        platform.create_note(mr_iid, build_summary(report))
    except GITLAB_ERRORS as error:
        logger.warning("Failed to post summary: %s", error)

    return report
