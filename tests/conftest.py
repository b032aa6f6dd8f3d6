"""
Общие фикстуры для тестов.
"""

from datetime import datetime, timezone

import pytest

from changelogger.models import FileChange, FileStatus, MergeStrategy, PullRequestRecord


def _make_pr(
    number: int,
    title: str = "Some change",
    body: str | None = None,
    labels: list[str] | None = None,
    paths: list[str] | None = None,
    author: str = "dev",
) -> PullRequestRecord:
    """Создать PullRequestRecord с минимумом параметров."""
    return PullRequestRecord(
        number=number,
        title=title,
        body=body,
        labels=labels or [],
        files=[FileChange(path=path, additions=10, deletions=1) for path in paths or []],
        author=author,
        merged_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
    )


@pytest.fixture
def make_pr():
    """Фабрика PullRequestRecord."""
    return _make_pr


@pytest.fixture
def reference_prs() -> list[PullRequestRecord]:
    """Пять PR с разными метками и способами слияния."""

    def files(*items: tuple[str, FileStatus, int, int]) -> list[FileChange]:
        return [
            FileChange(path=path, status=status, additions=additions, deletions=deletions)
            for path, status, additions, deletions in items
        ]

    return [
        PullRequestRecord(
            number=123,
            title="Add user authentication system",
            body=(
                "Implements OAuth2 authentication with Google and GitHub providers. "
                "Includes user session management and JWT tokens."
            ),
            labels=["feature", "security"],
            files=files(
                ("src/auth/oauth.ts", FileStatus.ADDED, 150, 0),
                ("src/auth/session.ts", FileStatus.ADDED, 80, 0),
                ("src/types/user.ts", FileStatus.MODIFIED, 20, 5),
            ),
            merge_strategy=MergeStrategy.SQUASH,
            author="alice",
            merged_at=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            merge_commit_sha="abc123",
        ),
        PullRequestRecord(
            number=124,
            title="Fix memory leak in data processor",
            body=(
                "Resolves issue where large datasets would cause memory to grow indefinitely. "
                "Added proper cleanup and garbage collection."
            ),
            labels=["bug", "performance"],
            files=files(
                ("src/processor/data.ts", FileStatus.MODIFIED, 25, 10),
                ("src/processor/cleanup.ts", FileStatus.ADDED, 45, 0),
                ("tests/processor.test.ts", FileStatus.MODIFIED, 30, 5),
            ),
            merge_strategy=MergeStrategy.REBASE,
            author="bob",
            merged_at=datetime(2024, 1, 16, 14, 20, tzinfo=timezone.utc),
            merge_commit_sha="def456",
        ),
        PullRequestRecord(
            number=125,
            title="Update API documentation",
            body="Updates documentation for new authentication endpoints and adds examples.",
            labels=["docs"],
            files=files(
                ("docs/api/auth.md", FileStatus.MODIFIED, 100, 20),
                ("docs/examples/auth-flow.md", FileStatus.ADDED, 50, 0),
                ("README.md", FileStatus.MODIFIED, 15, 3),
            ),
            merge_strategy=MergeStrategy.MERGE,
            author="charlie",
            merged_at=datetime(2024, 1, 17, 9, 15, tzinfo=timezone.utc),
            merge_commit_sha="ghi789",
        ),
        PullRequestRecord(
            number=126,
            title="BREAKING: Redesign user API endpoints",
            body="Complete overhaul of user management API. This is a breaking change that requires migration.",
            labels=["breaking", "api"],
            files=files(
                ("src/api/users.ts", FileStatus.MODIFIED, 200, 150),
                ("src/api/types.ts", FileStatus.MODIFIED, 50, 30),
                ("migrations/v2-user-api.sql", FileStatus.ADDED, 75, 0),
            ),
            merge_strategy=MergeStrategy.SQUASH,
            author="diana",
            merged_at=datetime(2024, 1, 18, 16, 45, tzinfo=timezone.utc),
            merge_commit_sha="jkl012",
        ),
        PullRequestRecord(
            number=127,
            title="Add real-time notifications",
            body="Implements WebSocket-based notifications for user actions and system events.",
            labels=["feature", "realtime"],
            files=files(
                ("src/notifications/websocket.ts", FileStatus.ADDED, 120, 0),
                ("src/notifications/events.ts", FileStatus.ADDED, 90, 0),
                ("src/server.ts", FileStatus.MODIFIED, 25, 5),
                ("package.json", FileStatus.MODIFIED, 3, 0),
            ),
            merge_strategy=MergeStrategy.REBASE,
            author="eve",
            merged_at=datetime(2024, 1, 19, 11, 30, tzinfo=timezone.utc),
            merge_commit_sha="mno345",
        ),
    ]
