"""Semrush API client.

API docs: https://developer.semrush.com/api/
Analytics reports are served from a single endpoint selected by ``type``;
the .Trends traffic reports live under ``/analytics/ta/`` and need a
separate subscription. Every request carries the account key and costs
API units, so responses are cached and requests are rate limited.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .cache import ResponseCache
from .errors import TRANSPORT_ERROR_STATUS, ConfigurationError, SemrushApiError
from .models import DEFAULT_COUNTRY, DEFAULT_DATABASE, ApiResponse
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

API_BASE = "https://api.semrush.com/"
TRENDS_API_BASE = "https://api.semrush.com/analytics/ta/"

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)

# Report columns requested per analytics report type
EXPORT_COLUMNS: dict[str, str] = {
    "domain_ranks": "Db,Dn,Rk,Or,Ot,Oc,Ad,At,Ac,Sh,Sv",
    "domain_organic": "Ph,Po,Pp,Pd,Nq,Cp,Ur,Tr,Tc,Co,Nr,Td",
    "domain_adwords": "Ph,Po,Pp,Pd,Ab,Nq,Cp,Tr,Tc,Co,Nr,Td",
    "domain_organic_organic": "Dn,Cr,Np,Or,Ot,Oc,Ad,At,Ac",
    "backlinks": "source_title,source_url,target_url,anchor,page_score,domain_score,external_num,internal_num,first_seen,last_seen",
    "backlinks_refdomains": "domain,domain_score,backlinks_num,ip,country,first_seen,last_seen",
    "phrase_all": "Ph,Nq,Cp,Co,Nr,Td",
    "phrase_related": "Ph,Nq,Cp,Co,Nr,Td",
    "phrase_this": "Ph,Nq,Cp,Co,Nr,Td,In,Kd",
    "phrase_these": "Ph,Nq,Cp,Co,Nr,Td,In,Kd",
    "phrase_organic": "Po,Pt,Dn,Ur,Fk,Fp,Fl",
    "phrase_adwords": "Dn,Ur,Vu",
    "phrase_adwords_historical": "Dn,Dt,Po,Ur,Tt,Ds,Vu",
    "phrase_fullsearch": "Ph,Nq,Cp,Co,Nr,Td,Fk,In,Kd",
    "phrase_questions": "Ph,Nq,Cp,Co,Nr,Td,In,Kd",
    "phrase_kdi": "Ph,Kd",
}

KEYWORD_SEPARATOR = ";"
DOMAIN_SEPARATOR = ","


def _report_params(report_type: str, limit: Optional[int] = None, **fields: Any) -> dict[str, Any]:
    """Build the query for an analytics report. ``display_limit`` only when a limit is given."""
    params: dict[str, Any] = {"type": report_type, **fields, "export_columns": EXPORT_COLUMNS[report_type]}
    if limit:
        params["display_limit"] = limit
    return params


def _decode_body(response: httpx.Response) -> Any:
    """JSON body when it parses, else the raw text (CSV reports, plain-text errors)."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _structured_error(status: int, body: Any) -> Optional[str]:
    """Return the error message of a failed response that carries an ``error`` object."""
    if status < 400 or not isinstance(body, dict) or "error" not in body:
        return None
    error = body["error"]
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return f"Request failed with status code {status}"


class SemrushClient:
    """Cached, rate-limited access to the Semrush analytics and .Trends APIs."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        if not api_key:
            raise ConfigurationError("Semrush API key is required. Set SEMRUSH_API_KEY.")
        self._api_key = api_key
        self.cache = cache if cache is not None else ResponseCache()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self._http_client = http_client
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "SemrushClient":
        """Build a client with its own cache and limiter from loaded settings."""
        return cls(
            settings.semrush_api_key,
            cache=ResponseCache(ttl_seconds=settings.api_cache_ttl_seconds),
            rate_limiter=RateLimiter(rate_limit=settings.api_rate_limit_per_second),
            http_client=http_client,
        )

    async def _get(self, url: str, params: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url, params=params)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params)

    def _failure(self, message: str, status: int, response: Any = None, kind: str = "API request failed") -> SemrushApiError:
        logger.error("%s: %s (status %d)", kind, message, status)
        return SemrushApiError(message, status, response)

    async def _make_request(self, url: str, params: dict[str, Any]) -> ApiResponse:
        """Run one request through cache, rate limiter, and upstream call."""
        request_params = {**params, "key": self._api_key}
        cache_key = self.cache.make_key(url, request_params)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for request: %s (%s)", url, params.get("type", "trends"))
            # Callers get their own copy; the stored envelope must stay untouched.
            return cached.model_copy(deep=True)

        await self.rate_limiter.admit()

        try:
            logger.debug("Making request to: %s (%s)", url, params.get("type", "trends"))
            response = await self._get(url, request_params)
            data = _decode_body(response)
        except httpx.TransportError as exc:
            raise self._failure(str(exc) or exc.__class__.__name__, TRANSPORT_ERROR_STATUS) from exc
        except Exception as exc:
            raise self._failure(
                str(exc) or exc.__class__.__name__, TRANSPORT_ERROR_STATUS, kind="Unknown error"
            ) from exc

        error_message = _structured_error(response.status_code, data)
        if error_message is not None:
            raise self._failure(error_message, response.status_code or TRANSPORT_ERROR_STATUS, data)

        api_response = ApiResponse(
            data=data,
            status=response.status_code,
            headers=dict(response.headers),
        )
        self.cache.set(cache_key, api_response)
        return api_response.model_copy(deep=True)

    # ─── Domain analytics ────────────────────────────────────────────────────

    async def domain_overview(self, domain: str, database: str = DEFAULT_DATABASE) -> ApiResponse:
        """Organic/paid traffic, keyword counts and rank for a domain."""
        return await self._make_request(API_BASE, _report_params("domain_ranks", domain=domain, database=database))

    async def domain_organic_keywords(
        self, domain: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        return await self._make_request(
            API_BASE, _report_params("domain_organic", limit, domain=domain, database=database)
        )

    async def domain_paid_keywords(
        self, domain: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        return await self._make_request(
            API_BASE, _report_params("domain_adwords", limit, domain=domain, database=database)
        )

    async def competitors_in_organic(
        self, domain: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        return await self._make_request(
            API_BASE, _report_params("domain_organic_organic", limit, domain=domain, database=database)
        )

    # ─── Backlinks ───────────────────────────────────────────────────────────

    async def backlinks(self, target: str, limit: Optional[int] = None) -> ApiResponse:
        """Backlinks pointing at a domain or URL."""
        return await self._make_request(API_BASE, _report_params("backlinks", limit, target=target))

    async def backlinks_domains(self, target: str, limit: Optional[int] = None) -> ApiResponse:
        """Referring domains for a domain or URL."""
        return await self._make_request(API_BASE, _report_params("backlinks_refdomains", limit, target=target))

    # ─── Keyword analytics ───────────────────────────────────────────────────

    async def keyword_overview(self, keyword: str, database: str = DEFAULT_DATABASE) -> ApiResponse:
        """Keyword summary across all regional databases."""
        return await self._make_request(API_BASE, _report_params("phrase_all", phrase=keyword, database=database))

    async def related_keywords(
        self, keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        return await self._make_request(
            API_BASE, _report_params("phrase_related", limit, phrase=keyword, database=database)
        )

    async def keyword_overview_single_db(self, keyword: str, database: str = DEFAULT_DATABASE) -> ApiResponse:
        """Keyword summary for one database, including intent and difficulty."""
        return await self._make_request(API_BASE, _report_params("phrase_this", phrase=keyword, database=database))

    async def batch_keyword_overview(self, keywords: list[str], database: str = DEFAULT_DATABASE) -> ApiResponse:
        """Summary for up to 100 keywords in one request."""
        return await self._make_request(
            API_BASE,
            _report_params("phrase_these", phrase=KEYWORD_SEPARATOR.join(keywords), database=database),
        )

    async def keyword_organic_results(
        self, keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        """Domains ranking in Google's top 100 for a keyword."""
        return await self._make_request(
            API_BASE, _report_params("phrase_organic", limit, phrase=keyword, database=database)
        )

    async def keyword_paid_results(
        self, keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        """Domains in Google's paid results for a keyword."""
        return await self._make_request(
            API_BASE, _report_params("phrase_adwords", limit, phrase=keyword, database=database)
        )

    async def keyword_ads_history(
        self, keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        """Domains that bid on a keyword over the last 12 months."""
        return await self._make_request(
            API_BASE, _report_params("phrase_adwords_historical", limit, phrase=keyword, database=database)
        )

    async def broad_match_keywords(
        self, keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        return await self._make_request(
            API_BASE, _report_params("phrase_fullsearch", limit, phrase=keyword, database=database)
        )

    async def phrase_questions(
        self, keyword: str, database: str = DEFAULT_DATABASE, limit: Optional[int] = None
    ) -> ApiResponse:
        return await self._make_request(
            API_BASE, _report_params("phrase_questions", limit, phrase=keyword, database=database)
        )

    async def keyword_difficulty(self, keywords: list[str], database: str = DEFAULT_DATABASE) -> ApiResponse:
        """Difficulty index for ranking in Google's top 10."""
        return await self._make_request(
            API_BASE,
            _report_params("phrase_kdi", phrase=KEYWORD_SEPARATOR.join(keywords), database=database),
        )

    # ─── Traffic analytics (.Trends) ─────────────────────────────────────────

    async def traffic_summary(self, domains: list[str], country: str = DEFAULT_COUNTRY) -> ApiResponse:
        return await self._make_request(
            TRENDS_API_BASE + "summary",
            {"domains": DOMAIN_SEPARATOR.join(domains), "country": country, "date": "all"},
        )

    async def traffic_sources(self, domain: str, country: str = DEFAULT_COUNTRY) -> ApiResponse:
        return await self._make_request(
            TRENDS_API_BASE + "sources",
            {"domain": domain, "country": country, "date": "all"},
        )

    # ─── Account ─────────────────────────────────────────────────────────────

    async def api_units_balance(self) -> ApiResponse:
        """Remaining API units on the account."""
        return await self._make_request(API_BASE, {"type": "api_units"})
