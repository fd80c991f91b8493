"""Ranked-search provider interface and shared payload parsing."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from geogrid_rank.core.config import ConfigurationError, Settings, require_api_key
from geogrid_rank.core.models import RankedSearchResultItem, SearchMode, SearchPage

logger = logging.getLogger(__name__)

Location = Tuple[float, float]


class ProviderError(RuntimeError):
    """Raised when the ranked-search provider returns an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RankedSearchProvider(Protocol):
    provider_name: str

    def fetch_page(
        self,
        keyword: str,
        locale: str,
        page: int,
        mode: SearchMode,
        *,
        location: Optional[Location] = None,
    ) -> SearchPage:
        """Return one page of ranked results. An empty page means the results are exhausted."""
        ...


def get_provider(settings: Settings) -> RankedSearchProvider:
    """Instantiate the backend named by SEARCH_PROVIDER."""
    api_key = require_api_key(settings)
    if settings.search_provider == "serper":
        from geogrid_rank.vendors.serper import SerperProvider

        return SerperProvider(api_key, timeout=settings.request_timeout_seconds)
    if settings.search_provider == "serpapi":
        from geogrid_rank.vendors.serpapi_search import SerpApiProvider

        return SerpApiProvider(api_key, timeout=settings.request_timeout_seconds)
    raise ConfigurationError(f"Unknown search provider: {settings.search_provider}")


def parse_result_items(raw_items: Any, *, link_keys: Iterable[str] = ("link",)) -> List[RankedSearchResultItem]:
    """Turn a provider result list into typed items.

    A result list that is not a list is rejected; individual entries that are
    not objects are skipped. Missing positions fall back to the page index.
    """
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ProviderError(f"Malformed provider payload: expected a result list, got {type(raw_items).__name__}")

    link_keys = tuple(link_keys)
    items: List[RankedSearchResultItem] = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            logger.debug("Skipping non-object result at index %s: %r", index, raw)
            continue
        gps = raw.get("gps_coordinates") or {}
        items.append(
            RankedSearchResultItem(
                title=_strip_or_none(raw.get("title") or raw.get("name")) or "",
                position=_safe_int(raw.get("position")) or index + 1,
                link=_first_link(raw, link_keys),
                address=_strip_or_none(raw.get("address")),
                rating=_safe_float(raw.get("rating")),
                review_count=_safe_int(raw.get("ratingCount") or raw.get("reviews")),
                phone_number=_strip_or_none(raw.get("phoneNumber") or raw.get("phone")),
                latitude=_safe_float(raw.get("latitude", gps.get("latitude") if isinstance(gps, dict) else None)),
                longitude=_safe_float(raw.get("longitude", gps.get("longitude") if isinstance(gps, dict) else None)),
                category=_strip_or_none(raw.get("type") or raw.get("category")),
            )
        )
    return items


def _first_link(raw: Dict[str, Any], link_keys: Tuple[str, ...]) -> Optional[str]:
    for key in link_keys:
        value = raw.get(key)
        if isinstance(value, dict):
            value = value.get("website")
        value = _strip_or_none(value)
        if value:
            return value
    return None


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)

    if isinstance(value, str):
        digits = "".join(ch for ch in value if ch.isdigit())
        if digits:
            return int(digits)
    return None
