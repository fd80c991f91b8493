"""Core data models shared by the grid ranking pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class DistanceUnit(str, Enum):
    METERS = "meters"
    MILES = "miles"


class SearchMode(str, Enum):
    ORGANIC = "organic"
    LOCAL = "local"


@dataclass(slots=True)
class GridPoint:
    """One sampled coordinate of the lattice; identity is (row, col)."""

    id: str
    latitude: float
    longitude: float
    row: int
    col: int
    is_center: bool = False
    is_selected: bool = True


@dataclass(frozen=True, slots=True)
class GridConfig:
    spacing: float
    grid_size: int
    distance_unit: DistanceUnit = DistanceUnit.METERS


@dataclass(slots=True)
class RankedSearchResultItem:
    """A single entry of a ranked result page (organic hit or map listing).

    `position` is 1-based within its page. For map listings `link` holds the
    business website, which may be missing.
    """

    title: str
    position: int
    link: Optional[str] = None
    address: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    phone_number: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category: Optional[str] = None


@dataclass(slots=True)
class SearchPage:
    items: List[RankedSearchResultItem] = field(default_factory=list)
    item_count_on_page: int = 0


@dataclass(slots=True)
class RankingResult:
    """Outcome of an organic ranking check for one keyword."""

    keyword: str
    found: bool = False
    page: Optional[int] = None
    position_on_page: Optional[int] = None
    overall_position: Optional[int] = None
    url: Optional[str] = None
    title: Optional[str] = None
    error: Optional[str] = None


@dataclass(slots=True)
class MatchingPlace:
    title: str
    position: int
    address: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None


@dataclass(slots=True)
class LocalRankingResult:
    """Outcome of a local-pack ranking check; a business may match several listings."""

    keyword: str
    found: bool = False
    total_places: int = 0
    matching_places: List[MatchingPlace] = field(default_factory=list)
    top_results: List[RankedSearchResultItem] = field(default_factory=list, repr=False)
    error: Optional[str] = None


@dataclass(slots=True)
class PointOutcome:
    point_id: str
    latitude: float
    longitude: float
    row: int
    col: int
    rank: Optional[int] = None
    matched_entity: Optional[RankedSearchResultItem] = None
    top_results: List[RankedSearchResultItem] = field(default_factory=list, repr=False)
    error: Optional[str] = None


@dataclass(slots=True)
class GridSearchSummary:
    avg_rank: Optional[float]
    found_count: int
    not_found_count: int
    top3_count: int
    top3_percent: int
    top10_count: int
    top10_percent: int
    top20_count: int
    top20_percent: int


@dataclass(slots=True)
class GridSearchReport:
    keyword: str
    target_website: str
    total_points: int
    summary: GridSearchSummary
    results: List[PointOutcome] = field(default_factory=list)


@dataclass(slots=True)
class KeywordRanking:
    keyword: str
    checked_at: str
    result: Union[RankingResult, LocalRankingResult]
