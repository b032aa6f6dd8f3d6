"""Модели данных для работы с GitHub и OpenAI API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _drop_nulls(data: Any) -> Any:
    if isinstance(data, dict):
        return {key: value for key, value in data.items() if value is not None}
    return data


class MergeStrategy(str, Enum):
    """Способ, которым Pull Request попал в основную ветку."""

    SQUASH = "squash"
    REBASE = "rebase"
    MERGE = "merge"


class FileStatus(str, Enum):
    """Статус файла в Pull Request."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class EntryType(str, Enum):
    """Категория записи в changelog."""

    FEATURE = "feature"
    FIX = "fix"
    DOCS = "docs"
    BREAKING = "breaking"
    INTERNAL = "internal"


class FileChange(BaseModel):
    """Один файл, измененный в Pull Request."""

    path: str = Field(description="Путь к файлу")
    status: FileStatus = Field(description="Статус изменения", default=FileStatus.MODIFIED)
    additions: int = Field(description="Количество добавленных строк", default=0, ge=0)
    deletions: int = Field(description="Количество удаленных строк", default=0, ge=0)
    patch: str | None = Field(description="Фрагмент diff (может быть обрезан)", default=None)


class PullRequestRecord(BaseModel):
    """Нормализованная информация о влитом Pull Request.

    Список файлов может быть пустым: сбор через git log не восстанавливает
    файлы, метки и описание PR.
    """

    number: int = Field(description="Номер PR", gt=0)
    title: str = Field(description="Заголовок PR")
    body: str | None = Field(description="Описание PR", default=None)
    labels: list[str] = Field(description="Метки PR", default_factory=list)
    files: list[FileChange] = Field(description="Измененные файлы", default_factory=list)
    merge_strategy: MergeStrategy = Field(description="Способ слияния", default=MergeStrategy.SQUASH)
    author: str = Field(description="Автор PR", default="unknown")
    merged_at: datetime = Field(description="Дата слияния")
    merge_commit_sha: str = Field(description="SHA merge-коммита", default="")


class ChangelogEntry(BaseModel):
    """Одна запись changelog.

    При разборе ответа модели поле ``category`` принимается под именем ``type``.
    Поля со значением null считаются отсутствующими.
    """

    model_config = ConfigDict(populate_by_name=True)

    category: EntryType = Field(description="Категория записи", alias="type")
    description: str = Field(description="Описание изменения")
    pr_number: int = Field(description="Номер PR, к которому относится запись")
    author: str = Field(description="Автор PR", default="")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class DriftReport(BaseModel):
    """Отчет о расхождении кода и документации."""

    warnings: list[str] = Field(description="Предупреждения", default_factory=list)
    suggestions: list[str] = Field(description="Рекомендации", default_factory=list)
    has_breaking_changes: bool = Field(description="Есть ли ломающие изменения", default=False)


class GenerationResult(BaseModel):
    """Результат генерации changelog и анализа документации."""

    changelog_markdown: str = Field(description="Готовый changelog в markdown")
    entries: list[ChangelogEntry] = Field(description="Записи changelog", default_factory=list)
    drift: DriftReport = Field(description="Отчет о дрейфе документации", default_factory=DriftReport)


class ModelResponse(BaseModel):
    """JSON-ответ модели.

    Все поля необязательны: отсутствующее поле заменяется значением по
    умолчанию, остальные поля при этом сохраняются. Записи проверяются
    отдельно, поэтому здесь они хранятся как есть.
    """

    model_config = ConfigDict(populate_by_name=True)

    changelog: str = Field(description="Changelog в markdown", default="")
    drift_warnings: list[str] = Field(description="Предупреждения о дрейфе", default_factory=list, alias="driftWarnings")
    suggestions: list[str] = Field(description="Рекомендации по документации", default_factory=list)
    has_breaking_changes: bool = Field(description="Есть ли ломающие изменения", default=False, alias="hasBreakingChanges")
    entries: list[Any] = Field(description="Записи changelog", default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Считать поля со значением null отсутствующими."""
        return _drop_nulls(data)


class ActionConfig(BaseModel):
    """Настройки запуска, собранные из окружения GitHub Actions."""

    github_token: str = Field(description="Токен GitHub API", min_length=1)
    openai_api_key: str = Field(description="API ключ OpenAI", min_length=1)
    repository: str = Field(description="Полное имя репозитория (owner/repo)", pattern=r"^[^/\s]+/[^/\s]+$")
    merge_strategy: MergeStrategy | None = Field(description="Принудительный способ слияния (None = auto)", default=None)
    since: datetime | None = Field(description="Начальная дата сбора PR", default=None)
    model: str = Field(description="Модель OpenAI", default="gpt-4o")
    openai_timeout: float = Field(description="Таймаут запроса к OpenAI в секундах", default=60.0, gt=0)
    changelog_path: str = Field(description="Путь к файлу changelog в репозитории", default="CHANGELOG.md")
    write_changelog: bool = Field(description="Сохранять ли changelog в репозиторий", default=True)
    repo_path: str = Field(description="Путь к локальной копии репозитория", default=".")
