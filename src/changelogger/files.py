"""Классификация измененных файлов по типу."""

import re
from collections.abc import Iterable

from .models import FileChange

DOCS_PATTERN = re.compile(r"\.(md|txt|rst)$", re.IGNORECASE)
TESTS_PATTERN = re.compile(r"\.(test|spec)\.", re.IGNORECASE)
CODE_PATTERN = re.compile(r"\.(ts|js|tsx|jsx|py|go|rs|java|c|cpp)$", re.IGNORECASE)
CONFIG_PATTERN = re.compile(r"\.(yml|yaml|json|toml|xml)$", re.IGNORECASE)
DEPENDENCY_MARKERS = ("package", "requirements", "Cargo")

# Порядок важен: побеждает первое совпавшее правило
CATEGORY_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("docs", DOCS_PATTERN),
    ("tests", TESTS_PATTERN),
    ("code", CODE_PATTERN),
    ("config", CONFIG_PATTERN),
)


def is_documentation(path: str) -> bool:
    """Является ли файл документацией."""
    return bool(DOCS_PATTERN.search(path))


def is_source_code(path: str) -> bool:
    """Является ли файл исходным кодом."""
    return bool(CODE_PATTERN.search(path))


def categorize_file(path: str) -> str:
    """Определить категорию одного файла.

    :param path: Путь к файлу
    :return: Одна из категорий docs, tests, code, config, dependencies, misc
    """
    for category, pattern in CATEGORY_RULES:
        if pattern.search(path):
            return category

    if any(marker in path for marker in DEPENDENCY_MARKERS):
        return "dependencies"

    return "misc"


def categorize_files(files: Iterable[FileChange]) -> list[str]:
    """Собрать набор категорий для файлов одного PR.

    :param files: Измененные файлы
    :return: Категории без повторов в порядке первого появления
    """
    categories: list[str] = []
    for file in files:
        category = categorize_file(file.path)
        if category not in categories:
            categories.append(category)
    return categories
