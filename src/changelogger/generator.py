"""Генератор changelog на основе влитых Pull Request с использованием AI."""

import json
import logging
import re
from collections.abc import Sequence
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from . import drift
from .changelog import EMPTY_CHANGELOG, format_changelog, partition, render_entries
from .exceptions import MalformedModelResponseError, ModelCallError
from .models import ChangelogEntry, DriftReport, GenerationResult, ModelResponse, PullRequestRecord
from .prompts import build_messages

logger = logging.getLogger(__name__)

JSON_START = re.compile(r"\{")


def extract_json(content: str) -> str:
    """Найти JSON-объект в ответе модели.

    Модель может добавить текст до или после JSON, поэтому берется первый
    сбалансированный участок, начинающийся с открывающей фигурной скобки.
    Текст после него, даже со скобками, игнорируется.

    :param content: Ответ модели
    :return: Текст найденного JSON-объекта
    :raises MalformedModelResponseError: Если JSON не найден или некорректен
    """
    match = JSON_START.search(content)
    if not match:
        raise MalformedModelResponseError("В ответе модели не найден JSON")

    try:
        _, end = json.JSONDecoder().raw_decode(content, match.start())
    except json.JSONDecodeError as e:
        raise MalformedModelResponseError(f"Некорректный JSON в ответе модели: {e}") from e

    return content[match.start() : end]


def validate_entries(raw_entries: Sequence[Any], prs: Sequence[PullRequestRecord]) -> list[ChangelogEntry]:
    """Проверить записи из ответа модели.

    Некорректные записи и записи со ссылками на неизвестные PR отбрасываются.

    :param raw_entries: Записи из JSON
    :param prs: Список PR текущего запуска
    :return: Проверенные записи
    """
    authors = {pr.number: pr.author for pr in prs}
    entries = []
    for raw in raw_entries:
        try:
            entry = ChangelogEntry.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Пропускаем некорректную запись changelog: {e.error_count()} ошибок")
            continue

        if entry.pr_number not in authors:
            logger.warning(f"Пропускаем запись для неизвестного PR #{entry.pr_number}")
            continue

        if not entry.author:
            entry.author = authors[entry.pr_number]
        entries.append(entry)
    return entries


class ChangelogGenerator:
    """Класс для генерации changelog и отчета о дрейфе документации."""

    def __init__(
        self,
        openai_api_key: str,
        model: str = "gpt-4o",
        timeout: float = 60.0,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ):
        """Инициализация генератора.

        :param openai_api_key: API ключ OpenAI
        :param model: Модель OpenAI
        :param timeout: Таймаут запроса в секундах
        :param temperature: Температура генерации
        :param max_tokens: Максимальное количество токенов в ответе
        """
        self.openai = OpenAI(api_key=openai_api_key, timeout=timeout)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def request_completion(self, prs: Sequence[PullRequestRecord]) -> str:
        """Запросить у модели changelog и анализ документации.

        :param prs: Список PR
        :return: Текст ответа модели
        :raises ModelCallError: Если запрос к модели завершился ошибкой
        """
        try:
            response = self.openai.chat.completions.create(
                model=self.model,
                messages=build_messages(prs),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            raise ModelCallError(f"Ошибка OpenAI API: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def parse_response(self, content: str, prs: Sequence[PullRequestRecord]) -> GenerationResult:
        """Разобрать ответ модели.

        Отсутствующие поля заменяются значениями по умолчанию.

        :param content: Текст ответа модели
        :param prs: Список PR
        :return: Объект GenerationResult
        :raises MalformedModelResponseError: Если ответ не удалось разобрать
        """
        try:
            parsed = ModelResponse.model_validate_json(extract_json(content))
        except ValidationError as e:
            raise MalformedModelResponseError(f"Ответ модели не соответствует ожидаемой структуре: {e}") from e

        entries = validate_entries(parsed.entries, prs)
        body = parsed.changelog.strip() or render_entries(entries)

        return GenerationResult(
            changelog_markdown=format_changelog(body),
            entries=entries,
            drift=DriftReport(
                warnings=parsed.drift_warnings,
                suggestions=parsed.suggestions,
                has_breaking_changes=parsed.has_breaking_changes,
            ),
        )

    def generate_fallback(self, prs: Sequence[PullRequestRecord]) -> GenerationResult:
        """Построить changelog без модели.

        :param prs: Список PR
        :return: Объект GenerationResult с эвристическим отчетом о дрейфе
        """
        entries = partition(prs)
        return GenerationResult(
            changelog_markdown=format_changelog(render_entries(entries)),
            entries=entries,
            drift=drift.analyze(prs),
        )

    def generate(self, prs: Sequence[PullRequestRecord]) -> GenerationResult:
        """Сгенерировать changelog и отчет о дрейфе документации.

        Ошибки модели и разбора ответа не пробрасываются: вместо них
        используется эвристический changelog.

        :param prs: Список PR
        :return: Объект GenerationResult
        """
        if not prs:
            return GenerationResult(changelog_markdown=EMPTY_CHANGELOG)

        try:
            logger.info(f"Генерируем changelog для {len(prs)} PR с помощью OpenAI...")
            content = self.request_completion(prs)
            return self.parse_response(content, prs)
        except Exception as e:
            logger.warning(f"Не удалось сгенерировать changelog с помощью OpenAI, используем эвристику: {e}")
            return self.generate_fallback(prs)
