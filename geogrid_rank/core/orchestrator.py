"""Fan the local rank tracker out over grid points in paced, bounded batches."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from geogrid_rank.core.config import ConfigurationError, Settings, get_settings
from geogrid_rank.core.domains import normalize_domain
from geogrid_rank.core.geogrid import selected_points
from geogrid_rank.core.models import (
    GridPoint,
    GridSearchReport,
    PointOutcome,
    RankedSearchResultItem,
)
from geogrid_rank.core.summary import summarize
from geogrid_rank.core.tracker import TOP_RESULTS_LIMIT, track_local_ranking
from geogrid_rank.vendors.provider import RankedSearchProvider, get_provider

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when a grid search request is unusable before any network call."""


class PointTrackingError(RuntimeError):
    """Raised when tracking a single grid point fails."""


def _search_point(
    point: GridPoint,
    keyword: str,
    target_domain: str,
    locale: str,
    provider: RankedSearchProvider,
    max_pages: int,
) -> PointOutcome:
    local = track_local_ranking(
        keyword,
        target_domain,
        locale,
        provider=provider,
        max_pages=max_pages,
        location=(point.latitude, point.longitude),
    )
    if local.error:
        raise PointTrackingError(local.error)

    outcome = PointOutcome(
        point_id=point.id,
        latitude=point.latitude,
        longitude=point.longitude,
        row=point.row,
        col=point.col,
        top_results=local.top_results[:TOP_RESULTS_LIMIT],
    )
    if local.matching_places:
        first = local.matching_places[0]
        outcome.rank = first.position
        outcome.matched_entity = next(
            (item for item in local.top_results if item.link == first.website and item.title == first.title),
            RankedSearchResultItem(
                title=first.title,
                position=first.position,
                link=first.website,
                address=first.address,
                rating=first.rating,
                review_count=first.reviews,
            ),
        )
    logger.debug("Point %s: %d places, rank=%s", point.id, local.total_places, outcome.rank)
    return outcome


def _search_point_safe(point: GridPoint, *args) -> PointOutcome:
    try:
        return _search_point(point, *args)
    except ConfigurationError:
        raise
    except Exception as exc:  # noqa: BLE001
        error = exc if isinstance(exc, PointTrackingError) else PointTrackingError(str(exc) or type(exc).__name__)
        logger.error("Error searching point %s: %s", point.id, error)
        return PointOutcome(
            point_id=point.id,
            latitude=point.latitude,
            longitude=point.longitude,
            row=point.row,
            col=point.col,
            error=str(error),
        )


def run_grid_search(
    points: Sequence[GridPoint],
    keyword: str,
    target_domain: str,
    *,
    provider: Optional[RankedSearchProvider] = None,
    settings: Optional[Settings] = None,
    locale: Optional[str] = None,
    batch_size: Optional[int] = None,
    pause_seconds: Optional[float] = None,
    max_pages: Optional[int] = None,
    on_success: Optional[Callable[[], None]] = None,
) -> List[PointOutcome]:
    """Track `keyword` at every selected point and return outcomes in input order.

    Points run `batch_size` at a time on a thread pool; a fixed pause
    separates batches. A failing point becomes an outcome carrying `error`,
    while validation and configuration problems abort the whole run.
    `on_success` is called once after the run completes.
    """
    if not points:
        raise ValidationError("Missing or invalid grid points")
    if not keyword or not keyword.strip():
        raise ValidationError("Missing search keyword")

    targets = selected_points(points)
    if not targets:
        raise ValidationError("No grid points are selected")

    settings = settings or get_settings()
    if provider is None:
        provider = get_provider(settings)

    keyword = keyword.strip()
    target = normalize_domain(target_domain)
    if not target:
        logger.warning("No target website given; every point will be reported as not found.")
    locale = locale or settings.default_country_code
    batch_size = batch_size or settings.grid_batch_size
    pause_seconds = settings.grid_batch_pause_seconds if pause_seconds is None else pause_seconds
    max_pages = max_pages or settings.grid_max_pages

    logger.info(
        "Starting grid search keyword=%r target=%s points=%d batch_size=%d",
        keyword,
        target,
        len(targets),
        batch_size,
    )

    results: List[PointOutcome] = []
    with ThreadPoolExecutor(max_workers=batch_size) as executor:
        for start in range(0, len(targets), batch_size):
            batch = targets[start:start + batch_size]
            batch_results = executor.map(
                lambda point: _search_point_safe(point, keyword, target, locale, provider, max_pages),
                batch,
            )
            results.extend(batch_results)

            if start + batch_size < len(targets):
                time.sleep(pause_seconds)

    found = sum(1 for outcome in results if outcome.rank is not None)
    logger.info("Completed grid search: points=%d found=%d", len(results), found)

    if on_success is not None:
        on_success()
    return results


class GridSearchRunner:
    """Runs a grid search and bundles its outcomes with the summary."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[RankedSearchProvider] = None,
    ):
        self.settings = settings or get_settings()
        self._provider = provider

    @property
    def provider(self) -> RankedSearchProvider:
        if self._provider is None:
            self._provider = get_provider(self.settings)
        return self._provider

    def run(
        self,
        points: Sequence[GridPoint],
        keyword: str,
        target_website: str,
        *,
        locale: Optional[str] = None,
        on_success: Optional[Callable[[], None]] = None,
    ) -> GridSearchReport:
        if not points:
            raise ValidationError("Missing or invalid grid points")
        if not keyword or not keyword.strip():
            raise ValidationError("Missing search keyword")

        outcomes = run_grid_search(
            points,
            keyword,
            target_website,
            provider=self.provider,
            settings=self.settings,
            locale=locale,
            on_success=on_success,
        )
        return GridSearchReport(
            keyword=keyword.strip(),
            target_website=target_website,
            total_points=len(outcomes),
            summary=summarize(outcomes, total_points=len(outcomes)),
            results=outcomes,
        )
