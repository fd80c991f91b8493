from geogrid_rank.core.models import PointOutcome
from geogrid_rank.core.summary import rank_band, summarize


def _outcomes(ranks):
    return [
        PointOutcome(point_id=f"0_{i}", latitude=0.0, longitude=float(i), row=0, col=i, rank=rank)
        for i, rank in enumerate(ranks)
    ]


def test_summarize_example():
    summary = summarize(_outcomes([1, 5, 15, None]))

    assert summary.avg_rank == 7.0
    assert summary.found_count == 3
    assert summary.not_found_count == 1
    assert summary.top3_count == 1
    assert summary.top3_percent == 25
    assert summary.top10_count == 2
    assert summary.top10_percent == 50
    assert summary.top20_count == 3
    assert summary.top20_percent == 75


def test_summarize_empty_ranks():
    summary = summarize(_outcomes([None, None]))

    assert summary.avg_rank is None
    assert summary.found_count == 0
    assert summary.not_found_count == 2
    assert summary.top20_percent == 0


def test_summarize_rounds_half_up():
    # mean 2.25 -> 2.3, 1/8 -> 12.5% -> 13%
    summary = summarize(_outcomes([2, 2, 2, 3, None, None, None, None]))
    assert summary.avg_rank == 2.3
    summary = summarize(_outcomes([1, None, None, None, None, None, None, None]))
    assert summary.top3_percent == 13


def test_summarize_uses_total_points_denominator():
    summary = summarize(_outcomes([3, 21]), total_points=4)

    assert summary.found_count == 2
    assert summary.not_found_count == 2
    assert summary.top3_percent == 25
    assert summary.top20_count == 1


def test_summarize_no_outcomes():
    summary = summarize([])
    assert summary.avg_rank is None
    assert summary.top3_percent == 0


def test_rank_band():
    assert rank_band(None) == "not_found"
    assert rank_band(3) == "top3"
    assert rank_band(4) == "top10"
    assert rank_band(10) == "top10"
    assert rank_band(20) == "top20"
    assert rank_band(21) == "beyond"
