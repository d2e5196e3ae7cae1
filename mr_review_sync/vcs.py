"""Local git accessors for branch and project detection."""

import logging
import subprocess
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

REMOTE_PREFERENCE = ("upstream", "origin")


def _git(*args: str) -> str:
    """Run a git command and return its stripped stdout.

    Raises:
        subprocess.CalledProcessError: If git exits non-zero.
        OSError: If git is not installed.
    """
    result = subprocess.run(
        ["git", *args], capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def get_current_branch() -> str | None:
    """Get the checked-out branch name.

    Returns:
        Branch name, or None in detached HEAD state or outside a repo.
    """
    try:
        branch = _git("rev-parse", "--abbrev-ref", "HEAD")
    except (subprocess.CalledProcessError, OSError) as error:
        logger.error("Failed to get current branch: %s", error)
        return None

    if branch == "HEAD":
        logger.error(
            "Detached HEAD state detected. Cannot safely determine current branch."
        )
        return None
    return branch or None


def get_remote_url() -> str | None:
    """Get the URL of the upstream remote, falling back to origin."""
    for remote in REMOTE_PREFERENCE:
        try:
            url = _git("remote", "get-url", remote)
        except (subprocess.CalledProcessError, OSError):
            continue
        if url:
            return url
    return None


def project_path_from_remote(remote_url: str) -> str | None:
    """Extract "group/project" from an SSH or HTTP(S) remote URL.

    Args:
        remote_url: e.g. git@host:group/project.git or
            https://host/group/project.git

    Returns:
        Project path, or None if the URL form is not recognised.
    """
    if remote_url.startswith("git@"):
        _, _, path = remote_url.partition(":")
    elif remote_url.startswith(("http://", "https://", "ssh://")):
        path = urlparse(remote_url).path
    else:
        return None

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return path or None


def detect_project_id(configured: str | None = None) -> str | None:
    """Resolve the GitLab project, preferring the configured value.

    Args:
        configured: Project ID or path from configuration.

    Returns:
        Project ID or "group/project" path, or None if undetectable.
    """
    if configured:
        return configured

    remote_url = get_remote_url()
    if remote_url is None:
        logger.error("Failed to detect project ID: no upstream or origin remote")
        return None

    path = project_path_from_remote(remote_url)
    if path is None:
        logger.error("Failed to detect project ID from remote %s", remote_url)
    return path
