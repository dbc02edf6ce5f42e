"""Semrush MCP Server.

FastMCP server exposing 19 Semrush SEO-data tools.
Run: semrush-mcp
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations

from .config import Settings, load_settings, log_config_status
from .core.client import SemrushClient
from .core.models import DEFAULT_COUNTRY, DEFAULT_DATABASE
from .logging_config import configure_logging
from .tools import execute, format_error

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)

_settings: Optional[Settings] = None
_client: Optional[SemrushClient] = None


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Load configuration and log its status before serving tool calls."""
    settings = _get_settings()
    configure_logging(settings.log_level)
    log_config_status(settings)
    logger.info("Semrush MCP Server is ready to process requests")
    try:
        yield
    finally:
        logger.info("Semrush MCP Server stopped")


mcp = FastMCP(
    "Semrush",
    instructions="SEO data from Semrush — domain and keyword analytics, backlinks, and .Trends traffic analytics. Each call spends Semrush API units.",
    lifespan=lifespan,
)


def _get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def _get_client() -> SemrushClient:
    """Shared client; one cache and one rate limiter for the whole process."""
    global _client
    if _client is None:
        _client = SemrushClient.from_settings(_get_settings())
    return _client


async def _call(tool_id: str, **args: Any) -> str:
    try:
        data = await execute(_get_client(), tool_id, args)
        return data if isinstance(data, str) else json.dumps(data)
    except Exception as exc:
        logger.error("Error while executing tool %s: %s", tool_id, exc)
        raise ToolError(format_error(exc)) from exc


# ─── Domain Analytics ────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def semrush_domain_overview(domain: str, database: str = DEFAULT_DATABASE) -> str:
    """Get domain overview data including organic/paid search traffic, keywords, and rankings.

    Args:
        domain: Domain name to analyze (e.g., 'example.com').
        database: Regional database (e.g., 'us', 'uk', 'ca'). Default 'us'.
    """
    return await _call("semrush_domain_overview", domain=domain, database=database)


@mcp.tool(annotations=READ_ONLY)
async def semrush_domain_organic_keywords(
    domain: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
) -> str:
    """Get organic keywords for a specific domain.

    Args:
        domain: Domain name to analyze (e.g., 'example.com').
        database: Regional database (e.g., 'us', 'uk', 'ca'). Default 'us'.
        limit: Maximum number of keywords to return.
    """
    return await _call("semrush_domain_organic_keywords", domain=domain, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_domain_paid_keywords(
    domain: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
) -> str:
    """Get paid keywords for a specific domain.

    Args:
        domain: Domain name to analyze (e.g., 'example.com').
        database: Regional database (e.g., 'us', 'uk', 'ca'). Default 'us'.
        limit: Maximum number of keywords to return.
    """
    return await _call("semrush_domain_paid_keywords", domain=domain, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_competitors(domain: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None) -> str:
    """Get competitors for a specific domain in organic search.

    Args:
        domain: Domain name to analyze (e.g., 'example.com').
        database: Regional database (e.g., 'us', 'uk', 'ca'). Default 'us'.
        limit: Maximum number of competitors to return.
    """
    return await _call("semrush_competitors", domain=domain, database=database, limit=limit)


# ─── Backlinks ───────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def semrush_backlinks(target: str, limit: Optional[int] = None) -> str:
    """Get backlinks for a specific domain or URL.

    Args:
        target: Domain or URL to analyze backlinks for.
        limit: Maximum number of backlinks to return.
    """
    return await _call("semrush_backlinks", target=target, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_backlinks_domains(target: str, limit: Optional[int] = None) -> str:
    """Get referring domains for a specific domain or URL.

    Args:
        target: Domain or URL to analyze referring domains for.
        limit: Maximum number of referring domains to return.
    """
    return await _call("semrush_backlinks_domains", target=target, limit=limit)


# ─── Keyword Analytics ───────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def semrush_keyword_overview(keyword: str, database: str = DEFAULT_DATABASE) -> str:
    """Get overview data for a specific keyword.

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca'). Default 'us'.
    """
    return await _call("semrush_keyword_overview", keyword=keyword, database=database)


@mcp.tool(annotations=READ_ONLY)
async def semrush_related_keywords(keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None) -> str:
    """Get related keywords for a specific keyword.

    Args:
        keyword: Keyword to find related terms for.
        database: Regional database (e.g., 'us', 'uk', 'ca'). Default 'us'.
        limit: Maximum number of related keywords to return.
    """
    return await _call("semrush_related_keywords", keyword=keyword, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_keyword_overview_single_db(keyword: str, database: str = DEFAULT_DATABASE) -> str:
    """Get detailed overview data for a keyword from a specific database (10 API units per line).

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca').
    """
    return await _call("semrush_keyword_overview_single_db", keyword=keyword, database=database)


@mcp.tool(annotations=READ_ONLY)
async def semrush_batch_keyword_overview(keywords: list[str], database: str = DEFAULT_DATABASE) -> str:
    """Analyze up to 100 keywords at once in a specific database (10 API units per line).

    Args:
        keywords: Keywords to analyze (max 100).
        database: Regional database (e.g., 'us', 'uk', 'ca').
    """
    return await _call("semrush_batch_keyword_overview", keywords=keywords, database=database)


@mcp.tool(annotations=READ_ONLY)
async def semrush_keyword_organic_results(
    keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
) -> str:
    """Get domains ranking in Google's top 100 for a keyword (10 API units per line).

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca').
        limit: Maximum number of results to return.
    """
    return await _call("semrush_keyword_organic_results", keyword=keyword, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_keyword_paid_results(
    keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
) -> str:
    """Get domains in Google's paid search results for a keyword (20 API units per line).

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca').
        limit: Maximum number of results to return.
    """
    return await _call("semrush_keyword_paid_results", keyword=keyword, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_keyword_ads_history(
    keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
) -> str:
    """Get domains that bid on a keyword in the last 12 months (100 API units per line).

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca').
        limit: Maximum number of results to return.
    """
    return await _call("semrush_keyword_ads_history", keyword=keyword, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_broad_match_keywords(
    keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
) -> str:
    """Get broad matches and alternate search queries for a keyword (20 API units per line).

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca').
        limit: Maximum number of results to return.
    """
    return await _call("semrush_broad_match_keywords", keyword=keyword, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_phrase_questions(keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None) -> str:
    """Get question-based keywords related to a term (40 API units per line).

    Args:
        keyword: Keyword to analyze.
        database: Regional database (e.g., 'us', 'uk', 'ca').
        limit: Maximum number of results to return.
    """
    return await _call("semrush_phrase_questions", keyword=keyword, database=database, limit=limit)


@mcp.tool(annotations=READ_ONLY)
async def semrush_keyword_difficulty(keywords: list[str], database: str = DEFAULT_DATABASE) -> str:
    """Get difficulty index for ranking in Google's top 10 (50 API units per line).

    Args:
        keywords: Keywords to analyze (max 100).
        database: Regional database (e.g., 'us', 'uk', 'ca').
    """
    return await _call("semrush_keyword_difficulty", keywords=keywords, database=database)


# ─── Traffic Analytics (.Trends) ─────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def semrush_traffic_summary(domains: list[str], country: str = DEFAULT_COUNTRY) -> str:
    """Get traffic summary data for domains (requires .Trends API access).

    Args:
        domains: Domains to analyze traffic for.
        country: Country code (e.g., 'us', 'uk', 'ca'). Default 'us'.
    """
    return await _call("semrush_traffic_summary", domains=domains, country=country)


@mcp.tool(annotations=READ_ONLY)
async def semrush_traffic_sources(domain: str, country: str = DEFAULT_COUNTRY) -> str:
    """Get traffic sources data for a domain (requires .Trends API access).

    Args:
        domain: Domain to analyze traffic sources for.
        country: Country code (e.g., 'us', 'uk', 'ca'). Default 'us'.
    """
    return await _call("semrush_traffic_sources", domain=domain, country=country)


# ─── Account ─────────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def semrush_api_units_balance() -> str:
    """Check the remaining API units balance."""
    return await _call("semrush_api_units_balance")


def main():
    """Entry point for the CLI command."""
    settings = _get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting Semrush MCP Server (%s transport)", settings.transport)
    if settings.transport != "stdio":
        mcp.settings.port = settings.port
    mcp.run(transport=settings.transport)


if __name__ == "__main__":
    main()
