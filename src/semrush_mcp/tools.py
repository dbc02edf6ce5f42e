"""Tool catalog — maps MCP tool names onto ``SemrushClient`` operations.

``execute`` is the single entry point the transport layer needs: it takes a
tool name and already-validated arguments and returns the raw upstream
payload, or raises ``SemrushApiError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .core.client import SemrushClient
from .core.errors import SemrushApiError

logger = logging.getLogger(__name__)


class UnknownToolError(KeyError):
    """Raised when ``execute`` is asked for a tool that is not in the catalog."""

    def __str__(self) -> str:
        return f"Unknown tool: {self.args[0]}"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    method: str
    params: tuple[str, ...] = ()


_DOMAIN = ("domain", "database", "limit")
_TARGET = ("target", "limit")
_KEYWORD = ("keyword", "database", "limit")
_KEYWORDS = ("keywords", "database")

TOOLS: list[ToolSpec] = [
    ToolSpec("semrush_domain_overview", "domain_overview", ("domain", "database")),
    ToolSpec("semrush_domain_organic_keywords", "domain_organic_keywords", _DOMAIN),
    ToolSpec("semrush_domain_paid_keywords", "domain_paid_keywords", _DOMAIN),
    ToolSpec("semrush_competitors", "competitors_in_organic", _DOMAIN),
    ToolSpec("semrush_backlinks", "backlinks", _TARGET),
    ToolSpec("semrush_backlinks_domains", "backlinks_domains", _TARGET),
    ToolSpec("semrush_keyword_overview", "keyword_overview", ("keyword", "database")),
    ToolSpec("semrush_related_keywords", "related_keywords", _KEYWORD),
    ToolSpec("semrush_keyword_overview_single_db", "keyword_overview_single_db", ("keyword", "database")),
    ToolSpec("semrush_batch_keyword_overview", "batch_keyword_overview", _KEYWORDS),
    ToolSpec("semrush_keyword_organic_results", "keyword_organic_results", _KEYWORD),
    ToolSpec("semrush_keyword_paid_results", "keyword_paid_results", _KEYWORD),
    ToolSpec("semrush_keyword_ads_history", "keyword_ads_history", _KEYWORD),
    ToolSpec("semrush_broad_match_keywords", "broad_match_keywords", _KEYWORD),
    ToolSpec("semrush_phrase_questions", "phrase_questions", _KEYWORD),
    ToolSpec("semrush_keyword_difficulty", "keyword_difficulty", _KEYWORDS),
    ToolSpec("semrush_traffic_summary", "traffic_summary", ("domains", "country")),
    ToolSpec("semrush_traffic_sources", "traffic_sources", ("domain", "country")),
    ToolSpec("semrush_api_units_balance", "api_units_balance"),
]

TOOLS_BY_NAME: dict[str, ToolSpec] = {t.name: t for t in TOOLS}


async def execute(client: SemrushClient, tool_id: str, args: Mapping[str, Any]) -> Any:
    """Run one tool call and return the upstream payload.

    Arguments left as ``None`` are dropped so the operation's own defaults
    apply (``database``/``country`` fall back to ``"us"``, ``limit`` is omitted).
    """
    spec = TOOLS_BY_NAME.get(tool_id)
    if spec is None:
        raise UnknownToolError(tool_id)

    kwargs = {name: args[name] for name in spec.params if args.get(name) is not None}
    logger.info("Tool called: %s", tool_id)
    response = await getattr(client, spec.method)(**kwargs)
    return response.data


def format_error(exc: BaseException) -> str:
    """Render a failure the way tool results report it."""
    if isinstance(exc, SemrushApiError):
        return f"Error: {exc.message}. Status: {exc.status}"
    return f"Unexpected error: {str(exc) or 'Unknown error'}"
