import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

# Ensure `geogrid_rank` is importable when running pytest from the repository root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from geogrid_rank.core import config  # noqa: E402
from geogrid_rank.core.models import RankedSearchResultItem, SearchPage  # noqa: E402


def make_items(links: List[Optional[str]], title_prefix: str = "Result") -> List[RankedSearchResultItem]:
    return [
        RankedSearchResultItem(title=f"{title_prefix} {index}", position=index, link=link)
        for index, link in enumerate(links, start=1)
    ]


class DummyProvider:
    """Serves canned pages keyed by page number; `errors` maps page -> exception."""

    provider_name = "dummy"

    def __init__(
        self,
        pages: Optional[Dict[int, List[RankedSearchResultItem]]] = None,
        errors: Optional[Dict[int, Exception]] = None,
        handler: Optional[Callable] = None,
    ):
        self.pages = pages or {}
        self.errors = errors or {}
        self.handler = handler
        self.calls = []

    def fetch_page(self, keyword, locale, page, mode, *, location=None):
        self.calls.append({"keyword": keyword, "locale": locale, "page": page, "mode": mode, "location": location})
        if self.handler is not None:
            return self.handler(keyword, locale, page, mode, location)
        if page in self.errors:
            raise self.errors[page]
        items = self.pages.get(page, [])
        return SearchPage(items=list(items), item_count_on_page=len(items))


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    for name in ("SEARCH_PROVIDER", "SERPER_API_KEY", "SERPAPI_API_KEY", "GRID_BATCH_SIZE", "DEFAULT_COUNTRY_CODE"):
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
