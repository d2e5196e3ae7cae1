"""Review comment model, JSON loading and Markdown rendering."""

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

FALLBACK_FOOTER = (
    "\n\n---\n"
    "*💡 This line is outside the direct diff of this MR. "
    "Use the file link above to view it in the repository browser.*"
)


class CommentsError(ValueError):
    """Raised when review comments cannot be loaded."""


class ReviewComment(BaseModel):
    """A single externally produced review comment on a new-file line."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    file: str = Field(min_length=1)
    line: int = Field(ge=1)
    description: str
    suggestion: str | None = None


_COMMENT_LIST = TypeAdapter(list[ReviewComment])


def load_comments(raw: str, cwd: str | Path | None = None) -> list[ReviewComment]:
    """Load review comments from a JSON literal or a .json file path.

    Args:
        raw: JSON text, or a path ending in ".json" relative to cwd.
        cwd: Base directory for relative paths. Defaults to the process cwd.

    Returns:
        Validated list of ReviewComment.

    Raises:
        CommentsError: If the file is unreadable, the JSON is invalid, or a
            record fails validation.
    """
    text = raw
    if raw.strip().endswith(".json"):
        path = Path(cwd or Path.cwd()) / raw.strip()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            raise CommentsError(
                f"Failed to read comments file {path}: {error}"
            ) from error

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise CommentsError(f"Failed to parse comments JSON: {error}") from error

    if isinstance(payload, dict):
        payload = [payload]

    try:
        return _COMMENT_LIST.validate_python(payload)
    except ValidationError as error:
        raise CommentsError(f"Invalid review comments: {error}") from error


def build_file_url(project_web_url: str, head_sha: str, path: str, line: int) -> str:
    """Build a blob deep link to a file line at a fixed commit."""
    return f"{project_web_url}/-/blob/{head_sha}/{path}#L{line}"


def format_comment_body(
    comment: ReviewComment,
    file_url: str,
    is_fallback: bool,
    language: str = "vue",
) -> str:
    """Render a review comment as a Markdown discussion body.

    Args:
        comment: ReviewComment to render.
        file_url: Deep link used by fallback notes.
        is_fallback: True when the comment is posted as a plain note.
        language: Fence language of the suggestion block.

    Returns:
        Markdown body.
    """
    body = f"**Issue:** {comment.description}\n"
    if comment.suggestion:
        body += f"**Suggestion:**\n```{language}\n{comment.suggestion}\n```"

    if is_fallback:
        header = f"**File:** [{comment.file} (Line {comment.line})]({file_url})\n"
        body = header + body + FALLBACK_FOOTER
    return body
