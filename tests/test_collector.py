"""
Тесты для сборщика Pull Request.
"""

import subprocess
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
from github import GithubException

from changelogger.collector import GitLogSource, PRCollector, ensure_utc
from changelogger.exceptions import SourceUnavailableError
from changelogger.models import FileStatus, MergeStrategy

SINCE = datetime(2024, 1, 10, tzinfo=timezone.utc)


def make_label(name: str) -> MagicMock:
    """Мок для метки."""
    label = MagicMock()
    label.name = name
    return label


def make_file(filename: str, status: str = "modified", additions: int = 5, deletions: int = 1) -> MagicMock:
    """Мок для файла PR."""
    file = MagicMock()
    file.filename = filename
    file.status = status
    file.additions = additions
    file.deletions = deletions
    file.patch = None
    return file


def make_pull(number: int, merged_at: datetime | None, title: str | None = None) -> MagicMock:
    """Мок для Pull Request."""
    pr = MagicMock()
    pr.number = number
    pr.title = title or f"PR {number}"
    pr.body = f"Body of {number}"
    pr.labels = [make_label("feature")]
    pr.user.login = f"user{number}"
    pr.merged_at = merged_at
    pr.merge_commit_sha = ""
    pr.get_files.return_value = [make_file("src/app.py"), make_file("docs/new.md", status="added")]
    return pr


@pytest.fixture
def mock_github() -> Mock:
    """Мок для GitHub API."""
    mock = MagicMock()
    mock_repo = MagicMock()
    mock_repo.full_name = "owner/repo"
    mock.get_repo.return_value = mock_repo
    return mock


@pytest.fixture
def collector(mock_github: Mock) -> PRCollector:
    """Сборщик с замоканным GitHub API."""
    with patch("changelogger.collector.Github", return_value=mock_github):
        return PRCollector(github_token="test_token", repository="owner/repo", repo_path="/tmp/repo")


def search_item(number: int, is_pr: bool = True) -> MagicMock:
    """Мок для результата поиска."""
    item = MagicMock()
    item.number = number
    item.pull_request = MagicMock() if is_pr else None
    return item


class TestPRCollector:
    """Тесты для класса PRCollector."""

    @patch("changelogger.collector.Github")
    def test_initialization(self, mock_github_class: Mock, mock_github: Mock) -> None:
        """Тест инициализации сборщика."""
        mock_github_class.return_value = mock_github

        collector = PRCollector(github_token="test_token", repository="owner/repo")

        mock_github_class.assert_called_once_with("test_token", per_page=100)
        mock_github.get_repo.assert_called_once_with("owner/repo")
        assert [source.name for source in collector.sources] == ["search", "git-log", "listing"]

    def test_search_source(self, collector: PRCollector, mock_github: Mock) -> None:
        """Тест сбора PR через Search API."""
        mock_repo = mock_github.get_repo.return_value
        mock_github.search_issues.return_value.get_page.return_value = [search_item(1), search_item(2, is_pr=False)]
        mock_repo.get_pull.return_value = make_pull(1, datetime(2024, 1, 12, tzinfo=timezone.utc))

        records = collector.collect(SINCE)

        assert len(records) == 1
        record = records[0]
        assert record.number == 1
        assert record.labels == ["feature"]
        assert record.author == "user1"
        assert [file.path for file in record.files] == ["src/app.py", "docs/new.md"]
        assert record.files[1].status == FileStatus.ADDED
        assert record.merge_strategy == MergeStrategy.SQUASH

        query = mock_github.search_issues.call_args[0][0]
        assert query == "repo:owner/repo is:pr is:merged merged:>=2024-01-10"
        mock_repo.get_pull.assert_called_once_with(1)
        mock_repo.get_pulls.assert_not_called()

    def test_search_filters_exact_merge_time(self, collector: PRCollector, mock_github: Mock) -> None:
        """Тест фильтрации PR, влитых раньше начальной даты в тот же день."""
        mock_repo = mock_github.get_repo.return_value
        mock_github.search_issues.return_value.get_page.return_value = [search_item(1)]
        mock_repo.get_pull.return_value = make_pull(1, datetime(2024, 1, 10, tzinfo=timezone.utc) - timedelta(hours=1))

        assert collector.collect(SINCE) == []

    def test_search_empty_result_is_final(self, collector: PRCollector, mock_github: Mock) -> None:
        """Тест пустого, но успешного поиска."""
        mock_repo = mock_github.get_repo.return_value
        mock_github.search_issues.return_value.get_page.return_value = []

        with patch("changelogger.collector.subprocess.run") as mock_run:
            assert collector.collect(SINCE) == []

        mock_run.assert_not_called()
        mock_repo.get_pulls.assert_not_called()

    @patch("changelogger.collector.subprocess.run")
    def test_falls_back_to_git_log(self, mock_run: Mock, collector: PRCollector, mock_github: Mock) -> None:
        """Тест перехода к git log при недоступном поиске."""
        mock_github.search_issues.side_effect = GithubException(403, {"message": "Forbidden"}, None)
        mock_run.return_value = MagicMock(
            stdout=(
                "aaa111|Merge pull request #45 from octo/fix-login-bug|Jane Doe|2024-01-20T10:00:00+00:00\n"
                "bbb222|Merge pull request #46 from octo/add-search|John Roe|2024-01-21T12:30:00+02:00\n"
            )
        )

        records = collector.collect(SINCE)

        assert [record.number for record in records] == [45, 46]
        assert records[0].title == "fix login bug"
        assert records[0].author == "Jane Doe"
        assert records[0].merge_commit_sha == "aaa111"
        assert records[0].files == []
        assert records[0].labels == []
        assert records[0].body is None
        assert records[0].merge_strategy == MergeStrategy.MERGE
        assert records[1].merged_at == datetime(2024, 1, 21, 10, 30, tzinfo=timezone.utc)

        args, kwargs = mock_run.call_args
        assert args[0][:2] == ["git", "log"]
        assert kwargs["cwd"] == "/tmp/repo"
        mock_github.get_repo.return_value.get_pulls.assert_not_called()

    @patch("changelogger.collector.subprocess.run")
    def test_falls_back_to_listing(self, mock_run: Mock, collector: PRCollector, mock_github: Mock) -> None:
        """Тест перехода к списку PR при недоступном поиске и пустой истории git."""
        mock_repo = mock_github.get_repo.return_value
        mock_github.search_issues.side_effect = GithubException(403, {"message": "Forbidden"}, None)
        mock_run.return_value = MagicMock(stdout="")
        mock_repo.get_pulls.return_value.get_page.return_value = [
            make_pull(10, datetime(2024, 1, 15, tzinfo=timezone.utc)),
            make_pull(11, None),
            make_pull(12, datetime(2024, 1, 5, tzinfo=timezone.utc)),
            make_pull(13, SINCE),
        ]

        records = collector.collect(SINCE)

        assert [record.number for record in records] == [10, 13]
        mock_repo.get_pulls.assert_called_once_with(state="closed", sort="updated", direction="desc")
        mock_repo.get_pulls.return_value.get_page.assert_called_once_with(0)

    @patch("changelogger.collector.subprocess.run")
    def test_all_sources_fail(self, mock_run: Mock, collector: PRCollector, mock_github: Mock) -> None:
        """Тест ошибки, когда не сработал ни один источник."""
        mock_repo = mock_github.get_repo.return_value
        mock_github.search_issues.side_effect = GithubException(403, {"message": "Forbidden"}, None)
        mock_run.side_effect = subprocess.CalledProcessError(128, ["git", "log"])
        mock_repo.get_pulls.side_effect = GithubException(500, {"message": "Server Error"}, None)

        with pytest.raises(SourceUnavailableError, match="Не удалось получить список PR"):
            collector.collect(SINCE)

    def test_since_defaults_to_last_release(self, collector: PRCollector, mock_github: Mock) -> None:
        """Тест начальной даты по последнему релизу."""
        mock_repo = mock_github.get_repo.return_value
        release_date = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        mock_repo.get_releases.return_value.get_page.return_value = [MagicMock(created_at=release_date)]
        mock_github.search_issues.return_value.get_page.return_value = []

        collector.collect()

        query = mock_github.search_issues.call_args[0][0]
        assert query.endswith("merged:>=2024-01-01")

    def test_last_release_date_without_releases(self, collector: PRCollector, mock_github: Mock) -> None:
        """Тест даты по умолчанию, если релизов нет."""
        mock_github.get_repo.return_value.get_releases.return_value.get_page.return_value = []

        since = collector.get_last_release_date()

        expected = datetime.now(timezone.utc) - timedelta(days=30)
        assert abs(since - expected) < timedelta(minutes=1)

    def test_last_release_date_on_error(self, collector: PRCollector, mock_github: Mock) -> None:
        """Тест даты по умолчанию при ошибке API релизов."""
        mock_repo = mock_github.get_repo.return_value
        mock_repo.get_releases.side_effect = GithubException(404, {"message": "Not Found"}, None)

        since = collector.get_last_release_date()

        expected = datetime.now(timezone.utc) - timedelta(days=30)
        assert abs(since - expected) < timedelta(minutes=1)


class TestGitLogSource:
    """Тесты для класса GitLogSource."""

    def test_parse_line_without_branch(self) -> None:
        """Тест заголовка, если в сообщении нет ветки."""
        record = GitLogSource.parse_line("ccc|Merge pull request #7|Dev|2024-01-20T10:00:00+00:00")

        assert record is not None
        assert record.number == 7
        assert record.title == "Merge pull request #7"

    def test_parse_line_with_pipe_in_subject(self) -> None:
        """Тест сообщения, содержащего разделитель."""
        record = GitLogSource.parse_line(
            "ddd|Merge pull request #8 from octo/a|b|Dev|2024-01-20T10:00:00+00:00"
        )

        assert record is not None
        assert record.number == 8
        assert record.author == "Dev"

    @pytest.mark.parametrize(
        "line",
        [
            "eee|Merge branch 'main' into feature|Dev|2024-01-20T10:00:00+00:00",
            "garbage",
            "fff|Merge pull request #9 from octo/x|Dev|not-a-date",
        ],
    )
    def test_parse_line_rejects(self, line: str) -> None:
        """Тест строк, не являющихся merge-коммитами PR."""
        assert GitLogSource.parse_line(line) is None

    @patch("changelogger.collector.subprocess.run")
    def test_duplicate_numbers_collapsed(self, mock_run: Mock) -> None:
        """Тест уникальности номеров PR."""
        mock_run.return_value = MagicMock(
            stdout=(
                "aaa|Merge pull request #5 from o/x|A|2024-01-20T10:00:00+00:00\n"
                "bbb|Merge pull request #5 from o/x|A|2024-01-19T10:00:00+00:00\n"
            )
        )

        records = GitLogSource().collect(SINCE)

        assert len(records) == 1
        assert records[0].merge_commit_sha == "aaa"

    @patch("changelogger.collector.subprocess.run")
    def test_missing_git(self, mock_run: Mock) -> None:
        """Тест отсутствующего git."""
        mock_run.side_effect = FileNotFoundError("git")

        with pytest.raises(SourceUnavailableError):
            GitLogSource().collect(SINCE)


def test_ensure_utc() -> None:
    """Тест приведения дат к UTC."""
    assert ensure_utc(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert ensure_utc(datetime(2024, 1, 1, 2, tzinfo=timezone(timedelta(hours=2)))).hour == 0
