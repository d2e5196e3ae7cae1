"""GitLab client implementing the ReviewPlatform protocol."""

import logging
from typing import Any

import gitlab
from gitlab.exceptions import GitlabError
from requests.exceptions import RequestException

from mr_review_sync.config import GitLabConfig
from mr_review_sync.platform_protocol import ChangedFile, DiffRefs, MergeRequestContext

logger = logging.getLogger(__name__)

# python-gitlab raises GitlabError for API responses and lets requests
# transport failures (connection resets, timeouts) through unchanged.
GITLAB_ERRORS = (GitlabError, RequestException)


class GitLabClient:
    """GitLab Merge Request client implementing ReviewPlatform protocol.

    Uses python-gitlab to look up merge requests, read their change set and
    post discussions and notes.
    """

    def __init__(self, config: GitLabConfig, project_id: str | int) -> None:
        """Initialize GitLab client for one project.

        Args:
            config: Connection settings (host and token).
            project_id: Numeric project ID or "group/project" path.
        """
        self._gitlab = gitlab.Gitlab(config.host, private_token=config.token)
        self._project_id = project_id
        self._project = self._gitlab.projects.get(project_id, lazy=True)
        self._merge_requests: dict[int, Any] = {}

    @property
    def project_id(self) -> str | int:
        return self._project_id

    def _merge_request(self, mr_iid: int) -> Any:
        if mr_iid not in self._merge_requests:
            self._merge_requests[mr_iid] = self._project.mergerequests.get(mr_iid)
        return self._merge_requests[mr_iid]

    def find_merge_request_iid(self, branch: str) -> int | None:
        """Find the most recently updated open MR for a source branch.

        Args:
            branch: Source branch name.

        Returns:
            Merge request IID, or None if none is open or the lookup failed.
        """
        if not branch:
            return None
        try:
            merge_requests = self._project.mergerequests.list(
                source_branch=branch,
                state="opened",
                order_by="updated_at",
                sort="desc",
                get_all=False,
            )
        except GITLAB_ERRORS as error:
            logger.error("Failed to list MRs for branch %s: %s", branch, error)
            return None

        if not merge_requests:
            logger.warning(
                "No open MR found with source_branch=%s in project %s",
                branch,
                self._project_id,
            )
            return None

        if len(merge_requests) > 1:
            logger.warning(
                "Found %d open MRs for branch %s. Choosing the latest updated one: !%s",
                len(merge_requests),
                branch,
                merge_requests[0].iid,
            )
            for merge_request in merge_requests:
                logger.warning(
                    "  - !%s: %s (Target: %s, Updated: %s)",
                    merge_request.iid,
                    merge_request.title,
                    merge_request.target_branch,
                    merge_request.updated_at,
                )
        return merge_requests[0].iid

    def get_context(self, mr_iid: int) -> MergeRequestContext:
        """Get MR metadata and its pinned diff refs.

        Args:
            mr_iid: Merge request internal ID.

        Returns:
            MergeRequestContext.

        Raises:
            gitlab.exceptions.GitlabGetError: If the MR cannot be fetched.
        """
        merge_request = self._merge_request(mr_iid)
        diff_refs = merge_request.diff_refs
        web_url = merge_request.web_url
        return MergeRequestContext(
            iid=merge_request.iid,
            title=merge_request.title,
            web_url=web_url,
            project_web_url=web_url.split("/-/merge_requests")[0],
            source_branch=merge_request.source_branch,
            target_branch=merge_request.target_branch,
            diff_refs=DiffRefs(
                base_sha=diff_refs["base_sha"],
                start_sha=diff_refs["start_sha"],
                head_sha=diff_refs["head_sha"],
            ),
        )

    def get_changes(self, mr_iid: int) -> list[ChangedFile]:
        """Get the list of files changed in the MR.

        Raw diffs are requested so large files are not truncated to an empty
        diff.

        Args:
            mr_iid: Merge request internal ID.

        Returns:
            List of ChangedFile objects.
        """
        merge_request = self._merge_request(mr_iid)
        changes = merge_request.changes(access_raw_diffs=True)["changes"]
        return [
            ChangedFile(
                new_path=change["new_path"],
                old_path=change.get("old_path") or change["new_path"],
                diff=change.get("diff") or "",
                new_file=bool(change.get("new_file")),
                deleted_file=bool(change.get("deleted_file")),
                renamed_file=bool(change.get("renamed_file")),
            )
            for change in changes
        ]

    def create_discussion(
        self, mr_iid: int, body: str, position: dict[str, Any]
    ) -> None:
        """Create an inline MR discussion.

        Raises:
            gitlab.exceptions.GitlabCreateError: If GitLab rejects the position.
        """
        self._merge_request(mr_iid).discussions.create(
            {"body": body, "position": position}
        )

    def create_note(self, mr_iid: int, body: str) -> None:
        """Create a plain MR note.

        Raises:
            gitlab.exceptions.GitlabCreateError: If GitLab rejects the note.
        """
        self._merge_request(mr_iid).notes.create({"body": body})

