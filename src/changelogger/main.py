#!/usr/bin/env python
"""Главный модуль для запуска Changelogger из GitHub Actions."""

import json
import logging
import os
import sys
import uuid
from datetime import datetime
from pathlib import Path

from .changelog import EMPTY_CHANGELOG
from .collector import PRCollector
from .generator import ChangelogGenerator
from .models import ActionConfig, MergeStrategy
from .output import ChangelogOutput, assemble
from .publisher import ChangelogPublisher

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def get_input(name: str, *fallbacks: str) -> str:
    """Получить входной параметр действия.

    :param name: Имя параметра (без префикса INPUT_)
    :param fallbacks: Переменные окружения, которые проверяются следом
    :return: Значение или пустая строка
    """
    for variable in (f"INPUT_{name.upper()}", *fallbacks):
        value = os.environ.get(variable, "").strip()
        if value:
            return value
    return ""


def resolve_repository() -> str:
    """Определить репозиторий из переменных окружения или файла события.

    :return: Полное имя репозитория (owner/repo)
    :raises ValueError: Если репозиторий не удалось определить
    """
    repository = os.environ.get("GITHUB_REPOSITORY", "").strip()
    if repository:
        return repository

    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if event_path and Path(event_path).exists():
        with Path(event_path).open("r", encoding="utf-8") as f:
            event = json.load(f)
        repository = event.get("repository", {}).get("full_name", "")
        if repository:
            return repository

    raise ValueError("Не удалось определить репозиторий. Установите GITHUB_REPOSITORY")


def parse_since(value: str) -> datetime | None:
    """Разобрать дату начала сбора PR.

    :param value: Дата или дата со временем в формате ISO 8601
    :return: Дата или None, если значение пустое
    :raises ValueError: Если формат даты некорректен
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Некорректная дата since: {value}") from e


def load_config() -> ActionConfig:
    """Собрать настройки из окружения GitHub Actions.

    :return: Объект ActionConfig
    :raises ValueError: Если не заданы обязательные параметры
    """
    github_token = get_input("github_token", "GITHUB_TOKEN")
    if not github_token:
        raise ValueError("GitHub токен не найден. Установите GITHUB_TOKEN или передайте github_token")

    openai_api_key = get_input("openai_api_key", "OPENAI_API_KEY")
    if not openai_api_key:
        raise ValueError("OpenAI API ключ не найден. Установите OPENAI_API_KEY или передайте openai_api_key")

    merge_strategy = get_input("merge_strategy").lower() or "auto"
    options = {
        "model": get_input("model"),
        "openai_timeout": get_input("openai_timeout"),
        "changelog_path": get_input("changelog_path"),
        "write_changelog": get_input("write_changelog"),
        "repo_path": get_input("repo_path"),
    }

    return ActionConfig(
        github_token=github_token,
        openai_api_key=openai_api_key,
        repository=resolve_repository(),
        merge_strategy=None if merge_strategy == "auto" else MergeStrategy(merge_strategy),
        since=parse_since(get_input("since")),
        **{key: value for key, value in options.items() if value},
    )


def set_github_output(name: str, value: str) -> None:
    """Установить output для GitHub Actions.

    :param name: Имя переменной
    :param value: Значение переменной (может быть многострочным)
    """
    github_output = os.environ.get("GITHUB_OUTPUT")

    if github_output:
        with Path(github_output).open("a", encoding="utf-8") as f:
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")
    else:
        # Старый способ (deprecated, но оставляем для совместимости)
        escaped = value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        print(f"::set-output name={name}::{escaped}")


def github_warning(message: str) -> None:
    """Вывести аннотацию-предупреждение GitHub Actions."""
    print(f"::warning::{message}")


def write_step_summary(output: ChangelogOutput, suggestions: list[str]) -> None:
    """Добавить changelog и предупреждения в summary запуска.

    :param output: Итоговый changelog
    :param suggestions: Рекомендации по документации
    """
    summary_path = os.environ.get("GITHUB_STEP_SUMMARY")
    if not summary_path:
        return

    parts = ["# 📝 Changelog Generated", output.changelog, "---"]
    if output.warnings_digest:
        parts.append("# ⚠️ Documentation Drift Warnings")
        parts.append("\n".join(f"- {warning}" for warning in output.warnings_digest.split("\n")))
        if suggestions:
            parts.append("# 💡 Suggestions")
            parts.append("\n".join(f"- {suggestion}" for suggestion in suggestions))

    with Path(summary_path).open("a", encoding="utf-8") as f:
        f.write("\n\n".join(parts) + "\n")


def run(config: ActionConfig) -> tuple[ChangelogOutput, list[str]]:
    """Собрать PR, сгенерировать changelog и сохранить его.

    Ошибка сохранения changelog не прерывает запуск.

    :param config: Настройки запуска
    :return: Итоговый changelog и рекомендации по документации
    """
    logger.info(f"Генерируем changelog для {config.repository}")

    collector = PRCollector(
        github_token=config.github_token,
        repository=config.repository,
        repo_path=config.repo_path,
        forced_strategy=config.merge_strategy,
    )
    prs = collector.collect(config.since)
    logger.info(f"Найдено {len(prs)} влитых PR")

    if not prs:
        logger.info("Нет PR для генерации changelog")
        return ChangelogOutput(changelog=EMPTY_CHANGELOG), []

    for pr in prs:
        logger.info(f"  #{pr.number}: {pr.title} ({pr.merge_strategy.value}) by @{pr.author}")

    generator = ChangelogGenerator(
        openai_api_key=config.openai_api_key,
        model=config.model,
        timeout=config.openai_timeout,
    )
    result = generator.generate(prs)
    output = assemble(result)

    if result.drift.warnings:
        github_warning(f"Documentation drift detected! {len(result.drift.warnings)} warnings found.")
    else:
        logger.info("Дрейф документации не обнаружен")

    if result.drift.has_breaking_changes:
        github_warning("Breaking changes detected - ensure migration documentation is updated!")

    if config.write_changelog:
        try:
            ChangelogPublisher(collector.repo, config.changelog_path).publish(output.changelog)
        except Exception as e:
            logger.warning(f"Не удалось сохранить {config.changelog_path}: {e}")
            github_warning(f"Could not update {config.changelog_path}: {e}")
            logger.info("Changelog доступен в outputs действия")

    return output, result.drift.suggestions


def main() -> None:
    """Главная функция для запуска из GitHub Actions."""
    try:
        config = load_config()
        output, suggestions = run(config)

        set_github_output("changelog", output.changelog)
        set_github_output("drift_warnings", output.warnings_digest)
        set_github_output("has_breaking_changes", str(output.has_breaking_changes).lower())
        set_github_output("entries_count", str(output.entries_count))
        write_step_summary(output, suggestions)

        logger.info("Changelogger успешно завершил работу")

    except Exception as e:
        logger.error(f"Критическая ошибка: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
