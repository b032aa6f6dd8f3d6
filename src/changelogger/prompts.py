"""Промпты для генерации changelog и анализа дрейфа документации."""

from collections.abc import Sequence

from .files import categorize_files, is_documentation, is_source_code
from .models import PullRequestRecord

DESCRIPTION_LIMIT = 400
KEY_FILES_LIMIT = 5
SEPARATOR = "\n\n---\n\n"

SYSTEM_PROMPT = """You are an expert technical writer and software architect. Analyze pull requests to:
1. Generate a professional changelog
2. Detect documentation drift (when docs might be outdated)
3. Identify breaking changes
4. Suggest documentation updates

Return a JSON response with the exact structure specified in the user prompt."""

USER_PROMPT = """Analyze these {count} pull requests and provide a comprehensive response in JSON format:

REQUIRED JSON STRUCTURE:
{{
  "changelog": "markdown formatted changelog with sections",
  "driftWarnings": ["array of specific documentation drift warnings"],
  "suggestions": ["array of actionable documentation update suggestions"],
  "hasBreakingChanges": boolean,
  "entries": [
    {{
      "type": "feature|fix|docs|breaking|internal",
      "description": "human readable description",
      "pr_number": number,
      "author": "github username"
    }}
  ]
}}

CHANGELOG REQUIREMENTS:
- Use ## for sections: ## 🚀 Features, ## 🐛 Bug Fixes, ## 📚 Documentation, ## ⚠️ Breaking Changes, ## 🔧 Internal
- Each entry: "- Description (#PR) by @author"
- Focus on USER IMPACT, not implementation details
- Group related changes

DRIFT DETECTION REQUIREMENTS:
- Identify PRs with code changes but no documentation updates
- Flag API modifications without doc updates
- Detect breaking changes missing migration guides
- Check for new features without examples
- Spot dependency updates needing upgrade guides

ANALYSIS RULES:
- Breaking changes: Look for "BREAKING", major version changes, API removals
- Features: New functionality, enhancements, "add", "implement"
- Fixes: Bug fixes, "fix", "resolve", "patch"
- Docs: Documentation only changes
- Internal: Refactoring, tests, dependencies, build changes

Pull Requests to analyze:
{summaries}

RESPOND ONLY WITH VALID JSON. NO MARKDOWN FORMATTING AROUND THE JSON."""


def summarize_pr(pr: PullRequestRecord) -> str:
    """Сформировать краткое описание одного PR для промпта.

    :param pr: Pull Request
    :return: Текстовое описание PR
    """
    categories = categorize_files(pr.files)
    has_docs = any(is_documentation(file.path) for file in pr.files)
    has_code = any(is_source_code(file.path) for file in pr.files)
    key_files = sorted(pr.files, key=lambda file: file.additions + file.deletions, reverse=True)[:KEY_FILES_LIMIT]
    description = (pr.body or "")[:DESCRIPTION_LIMIT] or "No description"

    lines = [
        f"PR #{pr.number}: {pr.title}",
        f"Author: @{pr.author}",
        f"Merge Strategy: {pr.merge_strategy.value}",
        f"Labels: {', '.join(pr.labels) or 'none'}",
        f"Files: {', '.join(categories) or 'unknown'}",
        f"Has Documentation: {'Yes' if has_docs else 'No'}",
        f"Has Code Changes: {'Yes' if has_code else 'No'}",
        f"Description: {description}",
        f"Key Changes: {', '.join(f'{file.path} (+{file.additions}/-{file.deletions})' for file in key_files)}",
    ]
    return "\n".join(lines)


def build_prompt(prs: Sequence[PullRequestRecord]) -> str:
    """Собрать пользовательский промпт для списка PR.

    :param prs: Список PR
    :return: Текст промпта
    """
    summaries = SEPARATOR.join(summarize_pr(pr) for pr in prs)
    return USER_PROMPT.format(count=len(prs), summaries=summaries)


def build_messages(prs: Sequence[PullRequestRecord]) -> list[dict[str, str]]:
    """Собрать список сообщений для chat completions.

    :param prs: Список PR
    :return: Сообщения с ролями system и user
    """
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(prs)},
    ]
