"""Сохранение changelog в репозиторий GitHub."""

import logging

from github import GithubException, UnknownObjectException
from github.Repository import Repository

logger = logging.getLogger(__name__)


class ChangelogPublisher:
    """Создает или обновляет файл changelog через Contents API."""

    def __init__(self, repo: Repository, path: str = "CHANGELOG.md"):
        """Инициализация.

        :param repo: Репозиторий GitHub
        :param path: Путь к файлу changelog
        """
        self.repo = repo
        self.path = path

    def publish(self, content: str) -> None:
        """Записать changelog в репозиторий.

        :param content: Содержимое файла
        :raises GithubException: Если запись не удалась
        """
        try:
            existing = self.repo.get_contents(self.path)
        except UnknownObjectException:
            existing = None

        if isinstance(existing, list):
            raise GithubException(422, {"message": f"{self.path} является директорией"}, None)

        if existing is None:
            self.repo.create_file(self.path, f"🤖 Create {self.path}", content)
            logger.info(f"Файл {self.path} создан")
        else:
            self.repo.update_file(self.path, f"🤖 Update {self.path}", content, existing.sha)
            logger.info(f"Файл {self.path} обновлен")
