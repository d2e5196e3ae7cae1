"""Shared test fixtures for mr-review-sync."""

from typing import Any

import pytest

from mr_review_sync.comments import ReviewComment
from mr_review_sync.platform_protocol import ChangedFile, DiffRefs, MergeRequestContext


@pytest.fixture
def sample_single_hunk_diff() -> str:
    """Hunk with an addition, a removal and three context lines."""
    return "@@ -1,3 +1,4 @@\n ctxA\n+added1\n ctxB\n-removed1\n ctxC\n"


@pytest.fixture
def sample_multi_hunk_diff() -> str:
    """Two hunks in one file with a gap of unchanged lines between them."""
    return (
        "@@ -5,3 +5,4 @@ def setup():\n"
        " ctx5\n"
        "+new6\n"
        " ctx7\n"
        " ctx8\n"
        "@@ -20,3 +21,4 @@ def teardown():\n"
        " ctx21\n"
        "-old21\n"
        "+new22\n"
        "+new23\n"
        " ctx24\n"
    )


@pytest.fixture
def sample_diff_refs() -> DiffRefs:
    return DiffRefs(
        base_sha="base_sha_aaa111",
        start_sha="start_sha_bbb222",
        head_sha="head_sha_ccc333",
    )


@pytest.fixture
def sample_context(sample_diff_refs: DiffRefs) -> MergeRequestContext:
    """Merge request context with pinned diff refs."""
    return MergeRequestContext(
        iid=42,
        title="Add checkout form",
        web_url="https://gitlab.example.com/web/shop/-/merge_requests/42",
        project_web_url="https://gitlab.example.com/web/shop",
        source_branch="feature/checkout",
        target_branch="main",
        diff_refs=sample_diff_refs,
    )


@pytest.fixture
def sample_changes(sample_multi_hunk_diff: str) -> list[ChangedFile]:
    """Change set with a modified file, a renamed file and a binary file."""
    return [
        ChangedFile(
            new_path="src/components/Checkout.vue",
            old_path="src/components/Checkout.vue",
            diff=sample_multi_hunk_diff,
        ),
        ChangedFile(
            new_path="src/utils/price.ts",
            old_path="src/helpers/price.ts",
            diff=(
                "@@ -1,2 +1,3 @@\n"
                " export const a = 1\n"
                "+export const b = 2\n"
                " export const c = 3\n"
            ),
            renamed_file=True,
        ),
        ChangedFile(
            new_path="public/logo.png",
            old_path="public/logo.png",
            diff="",
            new_file=True,
        ),
    ]


@pytest.fixture
def sample_comment() -> ReviewComment:
    return ReviewComment(
        file="src/components/Checkout.vue",
        line=6,
        description="Missing v-if guard for empty cart.",
        suggestion='<div v-if="items.length">',
    )


@pytest.fixture
def sample_gitlab_mr_changes(sample_multi_hunk_diff: str) -> dict[str, Any]:
    """Mock GitLab MR changes response."""
    return {
        "changes": [
            {
                "old_path": "src/components/Checkout.vue",
                "new_path": "src/components/Checkout.vue",
                "diff": sample_multi_hunk_diff,
                "new_file": False,
                "deleted_file": False,
                "renamed_file": False,
            },
            {
                "old_path": "src/helpers/price.ts",
                "new_path": "src/utils/price.ts",
                "diff": "@@ -1,2 +1,3 @@\n a\n+b\n c\n",
                "new_file": False,
                "deleted_file": False,
                "renamed_file": True,
            },
            {
                "old_path": "src/legacy.ts",
                "new_path": "src/legacy.ts",
                "diff": "@@ -1,2 +0,0 @@\n-gone1\n-gone2\n",
                "new_file": False,
                "deleted_file": True,
                "renamed_file": False,
            },
        ]
    }


@pytest.fixture
def sample_gitlab_diff_refs() -> dict[str, str]:
    """Mock mr.diff_refs with base/start/head SHA."""
    return {
        "base_sha": "base_sha_aaa111",
        "start_sha": "start_sha_bbb222",
        "head_sha": "head_sha_ccc333",
    }
