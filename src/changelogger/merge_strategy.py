"""Определение способа слияния Pull Request по форме merge-коммита."""

import logging

from github.Repository import Repository

from .models import MergeStrategy

logger = logging.getLogger(__name__)


class MergeStrategyClassifier:
    """Определяет, как был влит PR: squash, rebase или merge-коммит."""

    def __init__(self, repo: Repository, forced_strategy: MergeStrategy | None = None):
        """Инициализация классификатора.

        :param repo: Репозиторий GitHub
        :param forced_strategy: Стратегия, которую нужно вернуть без обращения к API
        """
        self.repo = repo
        self.forced_strategy = forced_strategy

    def classify(self, pr_title: str, pr_number: int, merge_commit_sha: str | None) -> MergeStrategy:
        """Определить способ слияния PR.

        Один родитель и упоминание заголовка или номера PR в сообщении коммита
        означают squash, один родитель без упоминания означает rebase, два
        родителя означают merge-коммит. Во всех остальных случаях, включая
        ошибки API, возвращается squash.

        :param pr_title: Заголовок PR
        :param pr_number: Номер PR
        :param merge_commit_sha: SHA merge-коммита
        :return: Способ слияния
        """
        if self.forced_strategy is not None:
            return self.forced_strategy

        if not merge_commit_sha:
            return MergeStrategy.SQUASH

        try:
            commit = self.repo.get_git_commit(merge_commit_sha)
            parents_count = len(commit.parents)
            message = commit.message or ""
        except Exception as e:
            logger.info(f"Не удалось определить способ слияния PR #{pr_number}, используем squash: {e}")
            return MergeStrategy.SQUASH

        if parents_count == 1:
            if (pr_title and pr_title in message) or f"#{pr_number}" in message:
                return MergeStrategy.SQUASH
            return MergeStrategy.REBASE

        if parents_count == 2:
            return MergeStrategy.MERGE

        return MergeStrategy.SQUASH
