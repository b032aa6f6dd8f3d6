"""Сборка итогового changelog и сводки предупреждений."""

from pydantic import BaseModel, Field

from .models import GenerationResult


class ChangelogOutput(BaseModel):
    """Итоговые данные для публикации."""

    changelog: str = Field(description="Changelog с разделом о дрейфе документации")
    warnings_digest: str = Field(description="Предупреждения, разделенные переводом строки", default="")
    has_breaking_changes: bool = Field(description="Есть ли ломающие изменения", default=False)
    entries_count: int = Field(description="Количество записей changelog", default=0)


def assemble(result: GenerationResult) -> ChangelogOutput:
    """Добавить к changelog предупреждения о дрейфе документации.

    Рекомендации выводятся только вместе с предупреждениями.

    :param result: Результат генерации
    :return: Объект ChangelogOutput
    """
    changelog = result.changelog_markdown
    warnings = result.drift.warnings

    if warnings:
        changelog = changelog.rstrip("\n") + "\n\n## ⚠️ Documentation Drift Detected\n\n"
        changelog += "".join(f"- {warning}\n" for warning in warnings)

        if result.drift.suggestions:
            changelog += "\n### 💡 Suggestions:\n\n"
            changelog += "".join(f"- {suggestion}\n" for suggestion in result.drift.suggestions)

    return ChangelogOutput(
        changelog=changelog,
        warnings_digest="\n".join(warnings),
        has_breaking_changes=result.drift.has_breaking_changes,
        entries_count=len(result.entries),
    )
