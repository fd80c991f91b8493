"""Utilities for converting grid search objects to and from wire payloads."""

import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional

from geogrid_rank.core.geogrid import point_id
from geogrid_rank.core.models import (
    GridConfig,
    GridPoint,
    GridSearchReport,
    GridSearchSummary,
    KeywordRanking,
    LocalRankingResult,
    PointOutcome,
    RankedSearchResultItem,
    RankingResult,
)

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Point ID",
    "Row",
    "Column",
    "Latitude",
    "Longitude",
    "Rank",
    "Business Name",
    "Address",
    "Rating",
    "Website",
]


def parse_grid_points(raw_points: Any) -> List[GridPoint]:
    """Build GridPoint objects from a JSON list; raises ValueError on bad entries."""
    if not isinstance(raw_points, list):
        raise ValueError("gridPoints must be a list")

    points: List[GridPoint] = []
    for index, raw in enumerate(raw_points):
        if not isinstance(raw, dict):
            raise ValueError(f"gridPoints[{index}] must be an object")
        try:
            latitude = float(raw["lat"] if "lat" in raw else raw["latitude"])
            longitude = float(raw["lng"] if "lng" in raw else raw["longitude"])
            row = int(raw.get("row", 0))
            col = int(raw.get("col", 0))
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise ValueError(f"gridPoints[{index}] is missing a valid coordinate") from exc
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValueError(f"gridPoints[{index}] has out-of-range coordinates")
        is_center = _flag(raw, "isCenter", row == 0 and col == 0, index)
        is_selected = _flag(raw, "isSelected", True, index)
        points.append(
            GridPoint(
                id=str(raw.get("id") or point_id(row, col)),
                latitude=latitude,
                longitude=longitude,
                row=row,
                col=col,
                is_center=is_center,
                is_selected=is_selected,
            )
        )
    return points


def _flag(raw: Dict[str, Any], key: str, default: bool, index: int) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"gridPoints[{index}].{key} must be a boolean")
    return value


def grid_point_to_payload(point: GridPoint) -> Dict[str, Any]:
    return {
        "id": point.id,
        "lat": point.latitude,
        "lng": point.longitude,
        "row": point.row,
        "col": point.col,
        "isCenter": point.is_center,
        "isSelected": point.is_selected,
    }


def item_to_payload(item: RankedSearchResultItem) -> Dict[str, Any]:
    return {
        "position": item.position,
        "title": item.title,
        "address": item.address or "",
        "rating": item.rating,
        "ratingCount": item.review_count,
        "type": item.category or "",
        "website": item.link or "",
        "phoneNumber": item.phone_number or "",
        "latitude": item.latitude,
        "longitude": item.longitude,
    }


def outcome_to_payload(outcome: PointOutcome) -> Dict[str, Any]:
    payload = {
        "pointId": outcome.point_id,
        "lat": outcome.latitude,
        "lng": outcome.longitude,
        "row": outcome.row,
        "col": outcome.col,
        "rank": outcome.rank,
        "matchedPlace": item_to_payload(outcome.matched_entity) if outcome.matched_entity else None,
        "places": [item_to_payload(item) for item in outcome.top_results],
    }
    if outcome.error:
        payload["error"] = outcome.error
    return payload


def summary_to_payload(summary: GridSearchSummary) -> Dict[str, Any]:
    return {
        "avgRank": summary.avg_rank,
        "foundCount": summary.found_count,
        "notFoundCount": summary.not_found_count,
        "top3Count": summary.top3_count,
        "top3Percent": summary.top3_percent,
        "top10Count": summary.top10_count,
        "top10Percent": summary.top10_percent,
        "top20Count": summary.top20_count,
        "top20Percent": summary.top20_percent,
    }


def report_to_payload(report: GridSearchReport) -> Dict[str, Any]:
    return {
        "keyword": report.keyword,
        "targetWebsite": report.target_website,
        "totalPoints": report.total_points,
        "summary": summary_to_payload(report.summary),
        "results": [outcome_to_payload(outcome) for outcome in report.results],
    }


def keyword_ranking_to_payload(ranking: KeywordRanking) -> Dict[str, Any]:
    result = ranking.result
    payload: Dict[str, Any] = {"keyword": ranking.keyword, "checkedAt": ranking.checked_at, "found": result.found}
    if isinstance(result, RankingResult):
        payload.update(
            position=result.overall_position,
            page=result.page,
            positionOnPage=result.position_on_page,
            url=result.url,
            title=result.title,
        )
    elif isinstance(result, LocalRankingResult):
        payload.update(
            totalPlaces=result.total_places,
            matchingPlaces=[
                {
                    "title": place.title,
                    "address": place.address,
                    "website": place.website,
                    "rating": place.rating,
                    "reviews": place.reviews,
                    "position": place.position,
                }
                for place in result.matching_places
            ],
        )
    if result.error:
        payload["error"] = result.error
    return payload


def report_to_csv(
    report: GridSearchReport,
    *,
    generated_at: str,
    grid_config: Optional[GridConfig] = None,
) -> str:
    """Render the grid report as CSV preceded by `#` metadata lines."""
    summary = report.summary
    lines = [
        "# Local Search Grid Report",
        f"# Generated: {generated_at}",
        f"# Keyword: {report.keyword}",
        f"# Target Website: {report.target_website or 'Not specified'}",
    ]
    if grid_config is not None:
        lines.append(f"# Grid Size: {grid_config.grid_size}x{grid_config.grid_size}")
        lines.append(f"# Spacing: {grid_config.spacing:g} {grid_config.distance_unit.value}")
    lines.extend(
        [
            f"# Average Rank: {summary.avg_rank if summary.avg_rank is not None else 'N/A'}",
            f"# Found in Top 3: {summary.top3_percent}%",
            f"# Found in Top 10: {summary.top10_percent}%",
            f"# Found in Top 20: {summary.top20_percent}%",
            "",
        ]
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(_csv_rows(report.results))
    return "\n".join(lines) + "\n" + buffer.getvalue()


def _csv_rows(outcomes: Iterable[PointOutcome]) -> Iterable[List[Any]]:
    for outcome in outcomes:
        matched = outcome.matched_entity
        yield [
            outcome.point_id,
            outcome.row,
            outcome.col,
            f"{outcome.latitude:.6f}",
            f"{outcome.longitude:.6f}",
            outcome.rank if outcome.rank is not None else "Not Found",
            matched.title if matched else "",
            (matched.address or "") if matched else "",
            matched.rating if matched and matched.rating is not None else "",
            (matched.link or "") if matched else "",
        ]
