"""Client utilities for the Serper Google search API."""

import logging
from typing import Any, Dict, Optional

import requests

from geogrid_rank.core.config import ConfigurationError
from geogrid_rank.core.models import SearchMode, SearchPage
from geogrid_rank.vendors.provider import Location, ProviderError, parse_result_items

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://google.serper.dev"


class SerperProvider:
    """Serper endpoints used for ranking:

    - POST /search  organic results (`organic`)
    - POST /places  local pack for a country (`places`)
    - POST /maps    map listings around a coordinate (`places`, via `ll`)
    """

    provider_name = "serper"

    def __init__(self, api_key: str, timeout: float = 10.0):
        if not api_key:
            raise ConfigurationError("SERPER_API_KEY must be set for the serper provider.")
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
        endpoint, payload = self._build_request(keyword, locale, page, SearchMode(mode), location)
        data = self._post(endpoint, payload)

        if SearchMode(mode) is SearchMode.ORGANIC:
            items = parse_result_items(data.get("organic"), link_keys=("link",))
        else:
            items = parse_result_items(data.get("places"), link_keys=("website",))
        logger.debug("Serper %s page=%s returned %d items for %r", endpoint, page, len(items), keyword)
        return SearchPage(items=items, item_count_on_page=len(items))

    def _build_request(
        self,
        keyword: str,
        locale: str,
        page: int,
        mode: SearchMode,
        location: Optional[Location],
    ):
        payload: Dict[str, Any] = {"q": keyword, "gl": (locale or "us").lower(), "page": page}
        if mode is SearchMode.ORGANIC:
            return "search", payload
        if location is not None:
            lat, lng = location
            payload["ll"] = f"{lat}, {lng}"
            return "maps", payload
        return "places", payload

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"X-API-KEY": self.api_key, "Content-Type": "application/json"}
        try:
            response = _SESSION.post(f"{_BASE_URL}/{endpoint}", json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Serper request failed: {exc}") from exc

        if not (200 <= response.status_code < 300):
            body = response.text[:500]
            logger.error("Serper /%s failed: status=%s body=%s", endpoint, response.status_code, body)
            raise ProviderError(
                f"Serper API error: {response.status_code} {body}".strip(),
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Serper returned a non-JSON payload", status_code=response.status_code) from exc
        if not isinstance(data, dict):
            raise ProviderError("Malformed Serper payload: expected a JSON object", status_code=response.status_code)
        return data
