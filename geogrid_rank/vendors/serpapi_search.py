"""SerpAPI backend for organic and local ranking pages."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from serpapi import GoogleSearch

from geogrid_rank.core.config import ConfigurationError
from geogrid_rank.core.models import SearchMode, SearchPage
from geogrid_rank.vendors.provider import Location, ProviderError, parse_result_items

logger = logging.getLogger(__name__)

ORGANIC_PAGE_SIZE = 10
LOCAL_PAGE_SIZE = 20
MAP_ZOOM = "14z"
# SerpAPI reports an exhausted result set as an error message.
_EMPTY_RESULTS_MARKERS = ("hasn't returned any results", "no results")


def build_serpapi_params(
    keyword: str,
    locale: str,
    page: int,
    mode: SearchMode,
    api_key: str,
    location: Optional[Location] = None,
) -> Dict[str, Any]:
    """Construct SerpAPI request parameters for the engine matching `mode`."""
    if not keyword or not keyword.strip():
        raise ValueError("Keyword must be provided for SerpAPI lookups.")

    params: Dict[str, Any] = {"q": keyword.strip(), "api_key": api_key, "gl": (locale or "us").lower()}
    if mode is SearchMode.ORGANIC:
        params.update(engine="google", start=(page - 1) * ORGANIC_PAGE_SIZE, num=ORGANIC_PAGE_SIZE)
    elif location is not None:
        lat, lng = location
        params.update(engine="google_maps", type="search", ll=f"@{lat},{lng},{MAP_ZOOM}")
        params["start"] = (page - 1) * LOCAL_PAGE_SIZE
    else:
        params.update(engine="google_local", start=(page - 1) * LOCAL_PAGE_SIZE)
    return params


class SerpApiProvider:
    provider_name = "serpapi"

    def __init__(self, api_key: str, timeout: float = 10.0):
        if not api_key:
            raise ConfigurationError("SERPAPI_API_KEY must be set for the serpapi provider.")
        self.api_key = api_key
        self.timeout = timeout

    def fetch_page(
        self,
        keyword: str,
        locale: str,
        page: int,
        mode: SearchMode,
        *,
        location: Optional[Location] = None,
    ) -> SearchPage:
        mode = SearchMode(mode)
        params = build_serpapi_params(keyword, locale, page, mode, self.api_key, location)
        logger.info("Calling SerpAPI engine=%s page=%s for keyword=%s", params["engine"], page, keyword)
        search = GoogleSearch(params)
        search.timeout = self.timeout
        try:
            data = search.get_dict()
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"SerpAPI request failed: {exc}") from exc

        if not isinstance(data, dict) or not data:
            raise ProviderError("SerpAPI returned an empty payload.")
        if "error" in data:
            message = str(data.get("error") or "")
            if any(marker in message.lower() for marker in _EMPTY_RESULTS_MARKERS):
                return SearchPage()
            raise ProviderError(f"SerpAPI returned an error response: {message}", body=message)

        if mode is SearchMode.ORGANIC:
            items = parse_result_items(data.get("organic_results"), link_keys=("link",))
        else:
            items = parse_result_items(_extract_local_items(data), link_keys=("website", "links"))
        return SearchPage(items=items, item_count_on_page=len(items))


def _extract_local_items(data: Dict[str, Any]) -> Iterable[Any]:
    """SerpAPI sometimes returns local_results as a list or nested dict."""
    local_results = data.get("local_results")
    if isinstance(local_results, list):
        return local_results
    if isinstance(local_results, dict):
        for key in ("places", "results", "local_results"):
            maybe = local_results.get(key)
            if isinstance(maybe, list):
                return maybe
        return []
    place_results = data.get("place_results")
    if isinstance(place_results, dict):
        return [place_results]
    return local_results
