import pytest

from conftest import DummyProvider, make_items
from geogrid_rank.core import tracker
from geogrid_rank.core.config import ConfigurationError
from geogrid_rank.core.models import LocalRankingResult, RankedSearchResultItem, RankingResult, SearchMode
from geogrid_rank.vendors.provider import ProviderError


def _page_of(n, prefix="other"):
    return make_items([f"https://{prefix}{i}.com" for i in range(n)])


def test_rank_counts_across_pages():
    page2 = _page_of(5)
    page2[2] = RankedSearchResultItem(title="Target", position=3, link="https://www.example.com/services")
    provider = DummyProvider(pages={1: _page_of(10), 2: page2})

    result = tracker.track_ranking("plumber", "example.com", "us", provider=provider)

    assert result.found is True
    assert result.overall_position == 13
    assert result.page == 2
    assert result.position_on_page == 3
    assert result.url == "https://www.example.com/services"
    assert result.title == "Target"


def test_stops_at_first_match_without_requesting_next_page():
    page1 = _page_of(10)
    page1[3] = RankedSearchResultItem(title="Target", position=4, link="https://example.com")
    provider = DummyProvider(pages={1: page1, 2: _page_of(10)})

    result = tracker.track_ranking("plumber", "example.com", "us", provider=provider)

    assert result.overall_position == 4
    assert [call["page"] for call in provider.calls] == [1]


def test_empty_page_ends_search():
    provider = DummyProvider(pages={1: _page_of(10)})

    result = tracker.track_ranking("plumber", "example.com", "us", provider=provider)

    assert result == RankingResult(keyword="plumber")
    assert [call["page"] for call in provider.calls] == [1, 2]


def test_page_budget_is_respected():
    provider = DummyProvider(pages={page: _page_of(10) for page in range(1, 10)})

    result = tracker.track_ranking("plumber", "example.com", "us", provider=provider, max_pages=3)

    assert result.found is False
    assert len(provider.calls) == 3


def test_page_failure_aborts_with_error():
    provider = DummyProvider(pages={1: _page_of(10)}, errors={2: ProviderError("Serper API error: 500")})

    result = tracker.track_ranking("plumber", "example.com", "us", provider=provider)

    assert result.found is False
    assert result.overall_position is None
    assert result.error == "Failed at page 2: Serper API error: 500"
    assert len(provider.calls) == 2


def test_configuration_error_propagates():
    provider = DummyProvider(errors={1: ConfigurationError("SERPER_API_KEY must be set")})
    with pytest.raises(ConfigurationError):
        tracker.track_ranking("plumber", "example.com", "us", provider=provider)


def test_local_ranking_collects_every_match():
    page1 = make_items(["https://example.com", None, "https://other.com"], title_prefix="Place")
    page2 = make_items(["https://other.com", "https://branch.example.com"], title_prefix="Place")
    provider = DummyProvider(pages={1: page1, 2: page2})

    result = tracker.track_local_ranking("plumber", "example.com", "us", provider=provider, location=(1.0, 2.0))

    assert result.found is True
    assert result.total_places == 5
    assert [place.position for place in result.matching_places] == [1, 5]
    assert result.matching_places[1].website == "https://branch.example.com"
    assert len(result.top_results) == 5
    assert provider.calls[0]["mode"] is SearchMode.LOCAL
    assert provider.calls[0]["location"] == (1.0, 2.0)
    assert [call["page"] for call in provider.calls] == [1, 2, 3]


def test_local_ranking_error_keeps_matches_but_is_not_found():
    page1 = make_items(["https://example.com"])
    provider = DummyProvider(pages={1: page1}, errors={2: ProviderError("timeout")})

    result = tracker.track_local_ranking("plumber", "example.com", "us", provider=provider)

    assert result.found is False
    assert [place.position for place in result.matching_places] == [1]
    assert result.total_places == 1
    assert result.error == "Failed at page 2: timeout"


def test_local_ranking_top_results_are_bounded():
    provider = DummyProvider(pages={1: _page_of(20), 2: _page_of(20)})

    result = tracker.track_local_ranking("plumber", "example.com", "us", provider=provider, max_pages=2)

    assert result.found is False
    assert result.total_places == 40
    assert len(result.top_results) == tracker.TOP_RESULTS_LIMIT


def test_check_keywords_shares_timestamp_and_isolates_failures(monkeypatch):
    def fake_track(keyword, target, locale, *, provider, max_pages):
        if keyword == "broken":
            raise RuntimeError("unexpected")
        return RankingResult(keyword=keyword, found=True, overall_position=2)

    monkeypatch.setattr(tracker, "track_ranking", fake_track)

    rankings = tracker.check_keywords(["plumber", "broken"], "https://www.example.com", "us", provider=DummyProvider())

    assert [r.keyword for r in rankings] == ["plumber", "broken"]
    assert rankings[0].checked_at == rankings[1].checked_at
    assert rankings[0].result.overall_position == 2
    assert rankings[1].result.found is False
    assert rankings[1].result.error == "unexpected"


def test_check_keywords_local_mode():
    provider = DummyProvider(pages={1: make_items(["https://example.com"])})

    rankings = tracker.check_keywords(["plumber"], "example.com", "us", provider=provider, mode="local")

    assert isinstance(rankings[0].result, LocalRankingResult)
    assert rankings[0].result.found is True
