"""Сбор влитых Pull Request с момента последнего релиза."""

import logging
import re
import subprocess
from datetime import datetime, timedelta, timezone
from typing import Protocol

from github import Github, GithubException
from github.PullRequest import PullRequest
from github.Repository import Repository

from .exceptions import SourceUnavailableError
from .merge_strategy import MergeStrategyClassifier
from .models import FileChange, FileStatus, MergeStrategy, PullRequestRecord

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
DEFAULT_LOOKBACK = timedelta(days=30)

MERGE_MESSAGE_PATTERN = re.compile(r"Merge pull request #(\d+)")
MERGE_TITLE_PATTERN = re.compile(r"Merge pull request #\d+ from [^/]+/(.+)")


def ensure_utc(value: datetime) -> datetime:
    """Привести дату к UTC (наивные даты считаются датами в UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PRSource(Protocol):
    """Источник данных о влитых PR."""

    name: str

    def collect(self, since: datetime) -> list[PullRequestRecord]:
        """Вернуть PR, влитые не раньше ``since``."""
        ...


class _EnrichingSource:
    """Общая часть источников, которые дополняют PR файлами и способом слияния."""

    def __init__(self, repo: Repository, classifier: MergeStrategyClassifier):
        self.repo = repo
        self.classifier = classifier

    def get_pr_files(self, pr: PullRequest) -> list[FileChange]:
        """Получить список измененных файлов PR.

        :param pr: Pull Request
        :return: Список FileChange
        """
        files = []
        for file in pr.get_files():
            # renamed, copied, changed и unchanged считаем изменением
            try:
                status = FileStatus(file.status)
            except ValueError:
                status = FileStatus.MODIFIED
            files.append(
                FileChange(
                    path=file.filename,
                    status=status,
                    additions=file.additions,
                    deletions=file.deletions,
                    patch=file.patch,
                )
            )
        return files

    def build_record(self, pr: PullRequest) -> PullRequestRecord:
        """Собрать нормализованную запись о PR.

        :param pr: Pull Request
        :return: Объект PullRequestRecord
        """
        merge_commit_sha = pr.merge_commit_sha or ""
        return PullRequestRecord(
            number=pr.number,
            title=pr.title,
            body=pr.body or None,
            labels=[label.name for label in pr.labels if label.name],
            files=self.get_pr_files(pr),
            merge_strategy=self.classifier.classify(pr.title, pr.number, merge_commit_sha),
            author=pr.user.login if pr.user else "unknown",
            merged_at=ensure_utc(pr.merged_at),
            merge_commit_sha=merge_commit_sha,
        )


class SearchSource(_EnrichingSource):
    """Поиск влитых PR через Search API.

    Для приватных репозиториев поиск часто недоступен, это ожидаемая ситуация.
    """

    name = "search"

    def __init__(self, github: Github, repo: Repository, classifier: MergeStrategyClassifier):
        super().__init__(repo, classifier)
        self.github = github

    def collect(self, since: datetime) -> list[PullRequestRecord]:
        query = f"repo:{self.repo.full_name} is:pr is:merged merged:>={since.date().isoformat()}"
        try:
            items = self.github.search_issues(query, sort="created", order="desc").get_page(0)
            records = []
            for item in items:
                if item.pull_request is None:
                    continue
                pr = self.repo.get_pull(item.number)
                # Поиск работает с точностью до дня
                if pr.merged_at is None or ensure_utc(pr.merged_at) < since:
                    continue
                records.append(self.build_record(pr))
        except GithubException as e:
            raise SourceUnavailableError(f"Search API недоступен: {e}") from e
        return records


class GitLogSource:
    """Разбор merge-коммитов из локальной истории git.

    Этот путь не восстанавливает файлы, метки и описание PR.
    """

    name = "git-log"

    def __init__(self, repo_path: str = "."):
        self.repo_path = repo_path

    def read_log(self, since: datetime) -> str:
        """Получить строки git log вида ``sha|subject|author|date``.

        :param since: Начальная дата
        :return: Вывод git log
        """
        command = [
            "git",
            "log",
            f"--since={since.isoformat()}",
            "--grep=Merge pull request",
            "--format=%H|%s|%an|%ad",
            "--date=iso-strict",
        ]
        try:
            completed = subprocess.run(
                command, cwd=self.repo_path, capture_output=True, text=True, check=True, encoding="utf-8"
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise SourceUnavailableError(f"git log завершился с ошибкой: {e}") from e
        return completed.stdout

    @staticmethod
    def parse_line(line: str) -> PullRequestRecord | None:
        """Разобрать одну строку git log.

        :param line: Строка вида ``sha|subject|author|date``
        :return: Запись о PR или None, если строка не является merge-коммитом PR
        """
        try:
            sha, rest = line.split("|", 1)
            subject, author, date = rest.rsplit("|", 2)
        except ValueError:
            return None

        number_match = MERGE_MESSAGE_PATTERN.search(subject)
        if not number_match:
            return None

        title_match = MERGE_TITLE_PATTERN.search(subject)
        title = title_match.group(1).replace("-", " ") if title_match else subject

        try:
            merged_at = ensure_utc(datetime.fromisoformat(date.strip()))
        except ValueError:
            return None

        return PullRequestRecord(
            number=int(number_match.group(1)),
            title=title,
            merge_strategy=MergeStrategy.MERGE,
            author=author or "unknown",
            merged_at=merged_at,
            merge_commit_sha=sha,
        )

    def collect(self, since: datetime) -> list[PullRequestRecord]:
        records: dict[int, PullRequestRecord] = {}
        for line in self.read_log(since).splitlines():
            record = self.parse_line(line.strip())
            if record is not None and record.number not in records:
                records[record.number] = record

        if not records:
            # Неглубокий клон в CI дает пустую историю, это не значит, что PR не было
            raise SourceUnavailableError("В истории git не найдено merge-коммитов PR")

        return list(records.values())


class ListingSource(_EnrichingSource):
    """Перебор последних закрытых PR с фильтрацией по дате слияния."""

    name = "listing"

    def collect(self, since: datetime) -> list[PullRequestRecord]:
        try:
            pulls = self.repo.get_pulls(state="closed", sort="updated", direction="desc").get_page(0)
            records = []
            for pr in pulls:
                if pr.merged_at is None or ensure_utc(pr.merged_at) < since:
                    continue
                records.append(self.build_record(pr))
        except GithubException as e:
            raise SourceUnavailableError(f"Не удалось получить список PR: {e}") from e
        return records


class PRCollector:
    """Сборщик влитых PR с каскадом источников данных."""

    def __init__(
        self,
        github_token: str,
        repository: str,
        repo_path: str = ".",
        forced_strategy: MergeStrategy | None = None,
    ):
        """Инициализация сборщика.

        :param github_token: Токен для доступа к GitHub API
        :param repository: Полное имя репозитория (owner/repo)
        :param repo_path: Путь к локальной копии репозитория
        :param forced_strategy: Способ слияния, который нужно указывать для всех PR
        """
        self.github = Github(github_token, per_page=PAGE_SIZE)
        self.repository = repository
        self.repo = self.github.get_repo(repository)
        self.classifier = MergeStrategyClassifier(self.repo, forced_strategy)
        self.sources: list[PRSource] = [
            SearchSource(self.github, self.repo, self.classifier),
            GitLogSource(repo_path),
            ListingSource(self.repo, self.classifier),
        ]

    def get_last_release_date(self) -> datetime:
        """Получить дату последнего релиза.

        :return: Дата создания последнего релиза или дата 30 дней назад
        """
        try:
            releases = self.repo.get_releases().get_page(0)
            if releases:
                return ensure_utc(releases[0].created_at)
        except Exception as e:
            logger.info(f"Не удалось получить релизы: {e}")

        logger.info("Релизы не найдены, используем дату 30 дней назад")
        return datetime.now(timezone.utc) - DEFAULT_LOOKBACK

    def collect(self, since: datetime | None = None) -> list[PullRequestRecord]:
        """Собрать влитые PR, пробуя источники по очереди.

        :param since: Начальная дата (по умолчанию дата последнего релиза)
        :return: Список PullRequestRecord
        :raises Exception: Ошибка последнего источника, если не сработал ни один
        """
        since = ensure_utc(since) if since is not None else self.get_last_release_date()
        logger.info(f"Собираем PR из {self.repository} с {since.isoformat()}")

        last_error: Exception | None = None
        for source in self.sources:
            try:
                records = source.collect(since)
            except Exception as e:
                logger.warning(f"Источник {source.name} недоступен: {e}")
                last_error = e
                continue

            logger.info(f"Источник {source.name}: найдено {len(records)} влитых PR")
            return records

        assert last_error is not None
        raise last_error
