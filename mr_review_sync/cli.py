"""Command-line entry point for syncing review comments into a GitLab MR."""

import argparse
import logging
import sys
from typing import NoReturn
from urllib.parse import unquote

from mr_review_sync.comments import CommentsError, ReviewComment, load_comments
from mr_review_sync.config import ConfigError, GitLabConfig, load_config
from mr_review_sync.diff_locator import get_valid_comment_lines
from mr_review_sync.gitlab_client import GITLAB_ERRORS, GitLabClient
from mr_review_sync.sync import sync_comments
from mr_review_sync.vcs import detect_project_id, get_current_branch

USAGE = "mr-review-sync <auto|MR_IID|info|changes> [JSON_DATA|FILE.json|MR_IID]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mr-review-sync",
        usage=USAGE,
        description="Sync AI review comments into a GitLab merge request.",
    )
    parser.add_argument(
        "action",
        nargs="?",
        default="auto",
        help="auto, info, changes, or an explicit MR IID",
    )
    parser.add_argument(
        "data",
        nargs="?",
        help="comments JSON, a .json file path, or an MR IID for 'changes'",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    return parser


def _fail(message: str) -> NoReturn:
    print(f"ERROR: {message}")
    sys.exit(1)


def create_client(config: GitLabConfig) -> GitLabClient:
    """Resolve the project and create a GitLab client.

    Raises:
        SystemExit: If the project cannot be detected.
    """
    project_id = detect_project_id(config.project_id)
    if not project_id:
        _fail("Project ID is required and could not be detected.")
    return GitLabClient(config, project_id)


def _resolve_mr_iid(client: GitLabClient, explicit: str | None) -> int | None:
    if explicit:
        try:
            return int(explicit.lstrip("!"))
        except ValueError:
            _fail(f"Invalid MR IID: {explicit}")
    branch = get_current_branch()
    if branch is None:
        return None
    print(f"Detected current branch: {branch}")
    return client.find_merge_request_iid(branch)


def show_info(client: GitLabClient) -> None:
    branch = get_current_branch()
    print(f"Branch: {branch}")
    print(f"Project: {unquote(str(client.project_id))}")
    if branch:
        mr_iid = client.find_merge_request_iid(branch)
        print(f"MR: {f'!{mr_iid}' if mr_iid else 'None found'}")


def show_changes(client: GitLabClient, explicit_iid: str | None) -> None:
    mr_iid = _resolve_mr_iid(client, explicit_iid)
    if not mr_iid:
        _fail("Please provide MR IID or ensure current branch has an open MR.")

    print(f"Fetching changes for MR !{mr_iid}...")
    changes = client.get_changes(mr_iid)
    if not changes:
        print("No changes found.")
        return

    print(f"Found {len(changes)} changed files:")
    for changed_file in changes:
        commentable = len(get_valid_comment_lines(changed_file.diff))
        print(
            f"  {changed_file.status}  {changed_file.new_path} "
            f"({commentable} commentable lines)"
        )


def run_sync(
    client: GitLabClient,
    config: GitLabConfig,
    comments: list[ReviewComment],
    explicit_iid: str | None,
) -> None:
    mr_iid = _resolve_mr_iid(client, explicit_iid)
    if not mr_iid:
        _fail(
            "Could not find an open MR for the current branch. "
            "Please provide MR IID manually."
        )

    print(f"Project: {unquote(str(client.project_id))}, MR: !{mr_iid}")
    print(f"Syncing {len(comments)} comments...")
    report = sync_comments(client, mr_iid, comments, config.suggestion_language)
    print(
        f"Positional: {report.positional}, fallback: {report.fallback}, "
        f"failed: {report.failed}"
    )
    print("Done.")


def main(argv: list[str] | None = None) -> None:
    """Run the review sync command.

    Actions:
    - info: print branch, project and open MR
    - changes [MR_IID]: list files changed in the MR
    - auto [JSON]: sync comments to the current branch's MR
    - MR_IID JSON: sync comments to an explicit MR
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    try:
        config = load_config()
    except ConfigError as error:
        _fail(str(error))

    client = create_client(config)

    try:
        if args.action == "info":
            show_info(client)
            return
        if args.action == "changes":
            show_changes(client, args.data)
            return

        if not args.data and args.action != "auto":
            _fail(f"Usage: {USAGE}")

        try:
            comments = load_comments(args.data) if args.data else []
        except CommentsError as error:
            _fail(str(error))

        explicit_iid = None if args.action == "auto" else args.action
        run_sync(client, config, comments, explicit_iid)
    except GITLAB_ERRORS as error:
        _fail(f"GitLab API error: {error}")


if __name__ == "__main__":
    main()
