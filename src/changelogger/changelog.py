"""Оформление changelog в markdown."""

from collections.abc import Sequence
from datetime import date

from .models import ChangelogEntry, EntryType, PullRequestRecord

TITLE = "# Changelog"
FOOTER = "*Generated by [Changelogger](https://github.com/rohansaibuddhi/changelogger) 🤖*"
EMPTY_CHANGELOG = f"{TITLE}\n\nNo changes found for this release."

SECTION_HEADINGS: dict[EntryType, str] = {
    EntryType.FEATURE: "## 🚀 Features",
    EntryType.FIX: "## 🐛 Bug Fixes",
    EntryType.DOCS: "## 📚 Documentation",
    EntryType.BREAKING: "## ⚠️ Breaking Changes",
    EntryType.INTERNAL: "## 🔧 Internal",
}

FEATURE_LABELS = ("feature", "enhancement")
FIX_LABELS = ("bug", "fix")
DOCS_LABELS = ("doc",)


def format_changelog(content: str, today: date | None = None) -> str:
    """Обернуть тело changelog в стандартный шаблон документа.

    :param content: Тело changelog в markdown
    :param today: Дата для раздела Unreleased (по умолчанию сегодня)
    :return: Готовый документ
    """
    today = today or date.today()
    return f"{TITLE}\n\n## [Unreleased] - {today.isoformat()}\n\n{content.strip()}\n\n---\n{FOOTER}\n"


def _has_label(pr: PullRequestRecord, keywords: Sequence[str]) -> bool:
    return any(keyword in label.lower() for label in pr.labels for keyword in keywords)


def categorize_pr(pr: PullRequestRecord) -> EntryType:
    """Отнести PR к категории по меткам и файлам.

    Проверки идут в порядке feature, fix, docs; побеждает первая совпавшая.

    :param pr: Pull Request
    :return: Категория записи
    """
    if _has_label(pr, FEATURE_LABELS):
        return EntryType.FEATURE
    if _has_label(pr, FIX_LABELS):
        return EntryType.FIX
    if _has_label(pr, DOCS_LABELS) or any(file.path.endswith(".md") for file in pr.files):
        return EntryType.DOCS
    return EntryType.INTERNAL


def partition(prs: Sequence[PullRequestRecord]) -> list[ChangelogEntry]:
    """Построить записи changelog без модели.

    :param prs: Список PR
    :return: Записи, сгруппированные по категориям в порядке разделов
    """
    buckets: dict[EntryType, list[ChangelogEntry]] = {category: [] for category in SECTION_HEADINGS}
    for pr in prs:
        category = categorize_pr(pr)
        buckets[category].append(
            ChangelogEntry(category=category, description=pr.title, pr_number=pr.number, author=pr.author)
        )
    return [entry for entries in buckets.values() for entry in entries]


def render_entries(entries: Sequence[ChangelogEntry]) -> str:
    """Отрисовать записи по разделам, пропуская пустые разделы.

    :param entries: Записи changelog
    :return: Тело changelog в markdown
    """
    sections = []
    for category, heading in SECTION_HEADINGS.items():
        lines = [f"- {entry.description} (#{entry.pr_number})" for entry in entries if entry.category == category]
        if lines:
            sections.append(heading + "\n\n" + "\n".join(lines))
    return "\n\n".join(sections)
