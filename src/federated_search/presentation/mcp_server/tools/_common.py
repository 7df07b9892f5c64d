"""
Shared helpers for MCP tools.

- ResponseFormatter: consistent Markdown for errors and empty results
- split_list: accept "a,b" strings as well as lists
- format_results: Markdown rendering of SearchResult lists
"""

from __future__ import annotations

from collections.abc import Sequence

from federated_search.domain.entities import SearchResult
from federated_search.shared.exceptions import FederatedSearchError

MAX_DESCRIPTION_CHARS = 200


class ResponseFormatter:
    """Agent-facing Markdown for the non-happy paths."""

    @staticmethod
    def error(
        error: Exception | str,
        suggestion: str | None = None,
        example: str | None = None,
        tool_name: str | None = None,
    ) -> str:
        if isinstance(error, FederatedSearchError):
            return error.to_agent_message()

        parts = [f"❌ **Error**: {error}"]
        if tool_name:
            parts[0] = f"❌ **Error** ({tool_name}): {error}"
        if suggestion:
            parts.append(f"💡 **Suggestion**: {suggestion}")
        if example:
            parts.append(f"📝 **Example**: `{example}`")
        return "\n".join(parts)

    @staticmethod
    def no_results(query: str, suggestions: Sequence[str] = ()) -> str:
        output = f"🔍 No results found for **{query}**"
        if suggestions:
            output += "\n\n**Try:**\n" + "\n".join(f"- {s}" for s in suggestions)
        return output


def split_list(value: str | Sequence[str] | None) -> list[str] | None:
    """Normalize "web, code" or ["web", "code"] to a clean list."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else list(value)
    cleaned = [str(item).strip().lower() for item in items if str(item).strip()]
    return cleaned or None


def _truncate(text: str, limit: int = MAX_DESCRIPTION_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def format_result(index: int, result: SearchResult) -> str:
    score = f" · score {result.score:.2f}" if result.score is not None else ""
    lines = [f"**{index}. [{result.title}]({result.url})**"]
    lines.append(f"   _{result.source.value}_ ({result.category.value}){score}")
    if result.timestamp:
        lines.append(f"   📅 {result.timestamp[:10]}")
    if result.description:
        lines.append(f"   {_truncate(result.description)}")
    return "\n".join(lines)


def format_results(results: Sequence[SearchResult]) -> str:
    return "\n\n".join(format_result(i, r) for i, r in enumerate(results, 1))
