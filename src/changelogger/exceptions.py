"""Исключения генератора changelog."""


class ChangeloggerError(Exception):
    """Базовое исключение."""


class SourceUnavailableError(ChangeloggerError):
    """Источник данных о PR недоступен (права, лимиты, неожиданный ответ API)."""


class MalformedModelResponseError(ChangeloggerError):
    """Ответ модели не содержит пригодного JSON."""


class ModelCallError(ChangeloggerError):
    """Ошибка при обращении к модели (сеть, квота, авторизация)."""
