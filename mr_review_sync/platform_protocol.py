"""Data passed between the sync pipeline and the review platform."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class DiffRefs:
    """Commit triple pinning a merge request diff view."""

    base_sha: str
    start_sha: str
    head_sha: str


@dataclass(frozen=True)
class MergeRequestContext:
    """Merge request metadata fetched once per sync run."""

    iid: int
    """Merge request internal ID."""

    title: str
    """Merge request title."""

    web_url: str
    """Merge request page URL."""

    project_web_url: str
    """Project URL derived from web_url, used for blob deep links."""

    source_branch: str
    target_branch: str

    diff_refs: DiffRefs
    """Snapshot every positional comment in the run is anchored to."""


@dataclass(frozen=True)
class ChangedFile:
    """A file in the merge request change set."""

    new_path: str
    old_path: str
    diff: str
    new_file: bool = False
    deleted_file: bool = False
    renamed_file: bool = False

    @property
    def status(self) -> str:
        """Single-letter status: A(dded), D(eleted), R(enamed) or M(odified)."""
        if self.new_file:
            return "A"
        if self.deleted_file:
            return "D"
        if self.renamed_file:
            return "R"
        return "M"


@runtime_checkable
class ReviewPlatform(Protocol):
    """What the sync pipeline needs from a code review platform."""

    def get_context(self, mr_iid: int) -> MergeRequestContext:
        """Get merge request metadata including pinned diff refs."""
        ...

    def get_changes(self, mr_iid: int) -> list[ChangedFile]:
        """Get the files changed in the merge request."""
        ...

    def create_discussion(
        self, mr_iid: int, body: str, position: dict[str, Any]
    ) -> None:
        """Create an inline discussion anchored at position.

        Raises:
            gitlab.exceptions.GitlabError: If the platform rejects the post.
        """
        ...

    def create_note(self, mr_iid: int, body: str) -> None:
        """Create a plain merge request note.

        Raises:
            gitlab.exceptions.GitlabError: If the platform rejects the post.
        """
        ...
