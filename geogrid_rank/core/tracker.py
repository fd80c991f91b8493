"""Single-location rank tracking against a ranked-search provider."""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from geogrid_rank.core.config import ConfigurationError
from geogrid_rank.core.domains import domains_match, normalize_domain
from geogrid_rank.core.models import (
    KeywordRanking,
    LocalRankingResult,
    MatchingPlace,
    RankingResult,
    SearchMode,
)
from geogrid_rank.vendors.provider import Location, RankedSearchProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 5
TOP_RESULTS_LIMIT = 20


def track_ranking(
    keyword: str,
    target_domain: str,
    locale: str,
    *,
    provider: RankedSearchProvider,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> RankingResult:
    """Page through organic results until the target domain first appears.

    The returned overall position counts every item seen on earlier pages, so
    a hit at position 3 of page 2 after a 10-item page 1 ranks 13th.
    """
    overall_position = 0

    for page in range(1, max_pages + 1):
        try:
            result_page = provider.fetch_page(keyword, locale, page, SearchMode.ORGANIC)
        except ConfigurationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Error fetching page %s for keyword %r: %s", page, keyword, exc)
            return RankingResult(keyword=keyword, error=f"Failed at page {page}: {exc}")

        for index, item in enumerate(result_page.items):
            overall_position += 1
            if domains_match(item.link, target_domain):
                logger.info("Found %s for %r at overall position %s", target_domain, keyword, overall_position)
                return RankingResult(
                    keyword=keyword,
                    found=True,
                    page=page,
                    position_on_page=index + 1,
                    overall_position=overall_position,
                    url=item.link,
                    title=item.title,
                )

        if result_page.item_count_on_page == 0:
            logger.debug("Results exhausted at page %s for %r", page, keyword)
            break

    return RankingResult(keyword=keyword)


def track_local_ranking(
    keyword: str,
    target_domain: str,
    locale: str,
    *,
    provider: RankedSearchProvider,
    max_pages: int = DEFAULT_MAX_PAGES,
    location: Optional[Location] = None,
) -> LocalRankingResult:
    """Scan every local page within the budget and collect all matching listings."""
    result = LocalRankingResult(keyword=keyword)
    overall_position = 0

    for page in range(1, max_pages + 1):
        try:
            result_page = provider.fetch_page(keyword, locale, page, SearchMode.LOCAL, location=location)
        except ConfigurationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Error fetching local page %s for keyword %r: %s", page, keyword, exc)
            result.error = f"Failed at page {page}: {exc}"
            break

        if not result_page.items:
            break

        for item in result_page.items:
            overall_position += 1
            result.total_places += 1
            if len(result.top_results) < TOP_RESULTS_LIMIT:
                result.top_results.append(item)
            if item.link and domains_match(item.link, target_domain):
                result.matching_places.append(
                    MatchingPlace(
                        title=item.title,
                        position=overall_position,
                        address=item.address,
                        website=item.link,
                        rating=item.rating,
                        reviews=item.review_count,
                    )
                )

    result.found = bool(result.matching_places) and result.error is None
    return result


def check_keywords(
    keywords: Iterable[str],
    target_domain: str,
    locale: str,
    *,
    provider: RankedSearchProvider,
    mode: SearchMode = SearchMode.ORGANIC,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[KeywordRanking]:
    """Track several keywords one after another under a shared timestamp."""
    checked_at = datetime.now(timezone.utc).isoformat()
    mode = SearchMode(mode)
    target = normalize_domain(target_domain)
    rankings: List[KeywordRanking] = []

    for keyword in keywords:
        result: Union[RankingResult, LocalRankingResult]
        try:
            if mode is SearchMode.ORGANIC:
                result = track_ranking(keyword, target, locale, provider=provider, max_pages=max_pages)
            else:
                result = track_local_ranking(keyword, target, locale, provider=provider, max_pages=max_pages)
        except ConfigurationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Error checking ranking for keyword %r: %s", keyword, exc)
            if mode is SearchMode.ORGANIC:
                result = RankingResult(keyword=keyword, error=str(exc))
            else:
                result = LocalRankingResult(keyword=keyword, error=str(exc))
        rankings.append(KeywordRanking(keyword=keyword, checked_at=checked_at, result=result))

    logger.info("Checked %d keywords for %s (%s)", len(rankings), target, mode.value)
    return rankings
