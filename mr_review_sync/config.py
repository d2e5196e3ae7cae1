"""Environment-driven configuration for the GitLab review sync."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_GITLAB_HOST = "https://gitlab.com"
DEFAULT_SUGGESTION_LANGUAGE = "vue"
DEFAULT_ENV_FILE = Path(__file__).resolve().parent / ".env"


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class GitLabConfig:
    """Connection settings passed explicitly to GitLabClient.

    Attributes:
        token: GitLab personal or project access token.
        host: GitLab instance URL without trailing slash.
        project_id: Numeric project ID or "group/project" path. None means
            detect it from the git remote.
        suggestion_language: Fence language for suggestion code blocks.
    """

    token: str
    host: str = DEFAULT_GITLAB_HOST
    project_id: str | None = None
    suggestion_language: str = DEFAULT_SUGGESTION_LANGUAGE


def load_config(
    env: Mapping[str, str] | None = None,
    env_file: str | os.PathLike[str] | None = None,
) -> GitLabConfig:
    """Build GitLabConfig from environment variables.

    When env is None, variables from env_file (default: the .env next to this
    module, then one in the working directory) are loaded into os.environ
    first without overriding values that are already set.

    Args:
        env: Mapping to read from instead of os.environ.
        env_file: Explicit .env path.

    Returns:
        GitLabConfig.

    Raises:
        ConfigError: If GITLAB_TOKEN is not set.
    """
    if env is None:
        if env_file is not None:
            load_dotenv(env_file, override=False)
        else:
            load_dotenv(DEFAULT_ENV_FILE, override=False)
            load_dotenv(override=False)
        env = os.environ

    token = env.get("GITLAB_TOKEN", "").strip()
    if not token:
        raise ConfigError(
            "GITLAB_TOKEN is missing. Set it in the environment or a .env file."
        )

    host = env.get("GITLAB_HOST", "").strip() or DEFAULT_GITLAB_HOST
    project_id = env.get("GITLAB_PROJECT_ID", "").strip() or None
    language = (
        env.get("REVIEW_SUGGESTION_LANGUAGE", "").strip()
        or DEFAULT_SUGGESTION_LANGUAGE
    )

    return GitLabConfig(
        token=token,
        host=host.rstrip("/"),
        project_id=project_id,
        suggestion_language=language,
    )
