"""Distribution statistics over per-point ranking outcomes."""

import math
from typing import Optional, Sequence

from geogrid_rank.core.models import GridSearchSummary, PointOutcome

RANK_BANDS = (3, 10, 20)


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _percent(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(_round_half_up(count / total * 100))


def rank_band(rank: Optional[int]) -> str:
    """Bucket a rank the way reports colour it."""
    if rank is None:
        return "not_found"
    for band in RANK_BANDS:
        if rank <= band:
            return f"top{band}"
    return "beyond"


def summarize(outcomes: Sequence[PointOutcome], total_points: Optional[int] = None) -> GridSearchSummary:
    """Fold outcomes into averages and top-K counts.

    Percentages use the number of submitted points as the denominator, not
    the number of points where the target was found.
    """
    total = len(outcomes) if total_points is None else total_points
    ranks = [outcome.rank for outcome in outcomes if outcome.rank is not None]

    avg_rank = _round_half_up(sum(ranks) / len(ranks), 1) if ranks else None
    top3 = sum(1 for rank in ranks if rank <= 3)
    top10 = sum(1 for rank in ranks if rank <= 10)
    top20 = sum(1 for rank in ranks if rank <= 20)

    return GridSearchSummary(
        avg_rank=avg_rank,
        found_count=len(ranks),
        not_found_count=total - len(ranks),
        top3_count=top3,
        top3_percent=_percent(top3, total),
        top10_count=top10,
        top10_percent=_percent(top10, total),
        top20_count=top20,
        top20_percent=_percent(top20, total),
    )
