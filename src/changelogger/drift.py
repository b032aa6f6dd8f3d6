"""Эвристический анализ расхождения кода и документации.

Каждое правило - чистая функция от списка PR. Правила применяются в
фиксированном порядке, порядок предупреждений и рекомендаций совпадает с
порядком правил.
"""

import re
from collections.abc import Callable, Sequence

from .files import is_documentation, is_source_code
from .models import DriftReport, PullRequestRecord

API_KEYWORDS = re.compile(r"\b(api|apis|endpoints?)\b", re.IGNORECASE)
API_PATH_MARKERS = ("api", "router")
EXAMPLE_PATH_MARKERS = ("example", "demo")
FEATURE_TITLE_KEYWORDS = re.compile(
    r"\b(add|adds|added|adding|implement|implements|implemented|implementing)\b",
    re.IGNORECASE,
)

Rule = Callable[[Sequence[PullRequestRecord]], DriftReport]


def _is_docs_only(pr: PullRequestRecord) -> bool:
    return bool(pr.files) and all(is_documentation(file.path) for file in pr.files)


def check_code_without_docs(prs: Sequence[PullRequestRecord]) -> DriftReport:
    """Изменения кода без единого изменения документации."""
    code_prs = [pr for pr in prs if any(is_source_code(file.path) for file in pr.files)]
    has_docs = any(is_documentation(file.path) for pr in prs for file in pr.files)

    if not code_prs or has_docs:
        return DriftReport()

    return DriftReport(
        warnings=[f"{len(code_prs)} PRs contain code changes but no documentation updates found"],
        suggestions=["Consider updating README.md or documentation to reflect code changes"],
    )


def check_api_changes(prs: Sequence[PullRequestRecord]) -> DriftReport:
    """Изменения API: ключевые слова в заголовке/описании или пути к файлам."""
    api_prs = []
    for pr in prs:
        if _is_docs_only(pr):
            continue
        mentions_api = bool(API_KEYWORDS.search(pr.title) or API_KEYWORDS.search(pr.body or ""))
        touches_api = any(marker in file.path.lower() for file in pr.files for marker in API_PATH_MARKERS)
        if mentions_api or touches_api:
            api_prs.append(pr)

    if not api_prs:
        return DriftReport()

    return DriftReport(
        warnings=[f"{len(api_prs)} PRs modify APIs - documentation may need updates"],
        suggestions=["Update API documentation and examples to reflect changes"],
    )


def check_breaking_changes(prs: Sequence[PullRequestRecord]) -> DriftReport:
    """Признаки ломающих изменений в заголовке, описании или метках."""
    breaking_prs = [
        pr
        for pr in prs
        if "breaking" in pr.title.lower()
        or "breaking change" in (pr.body or "").lower()
        or any("breaking" in label.lower() for label in pr.labels)
    ]

    if not breaking_prs:
        return DriftReport()

    return DriftReport(
        warnings=[f"{len(breaking_prs)} PRs contain breaking changes"],
        suggestions=["Add migration guide and update version compatibility documentation"],
        has_breaking_changes=True,
    )


def check_features_without_examples(prs: Sequence[PullRequestRecord]) -> DriftReport:
    """Новые возможности без примеров использования (только рекомендация)."""
    feature_prs = [
        pr
        for pr in prs
        if any("feature" in label.lower() for label in pr.labels) or FEATURE_TITLE_KEYWORDS.search(pr.title)
    ]
    if not feature_prs:
        return DriftReport()

    has_examples = any(
        marker in file.path.lower() for pr in prs for file in pr.files for marker in EXAMPLE_PATH_MARKERS
    )
    if has_examples:
        return DriftReport()

    return DriftReport(suggestions=[f"{len(feature_prs)} new features added - consider adding usage examples"])


RULES: tuple[Rule, ...] = (
    check_code_without_docs,
    check_api_changes,
    check_breaking_changes,
    check_features_without_examples,
)


def analyze(prs: Sequence[PullRequestRecord], rules: Sequence[Rule] = RULES) -> DriftReport:
    """Проверить PR на дрейф документации без обращения к модели.

    :param prs: Список PR
    :param rules: Правила в порядке применения
    :return: Объединенный DriftReport
    """
    report = DriftReport()
    for rule in rules:
        result = rule(prs)
        report.warnings.extend(result.warnings)
        report.suggestions.extend(result.suggestions)
        report.has_breaking_changes = report.has_breaking_changes or result.has_breaking_changes
    return report
