import argparse
import json

import pytest

from geogrid_rank.core.config import Settings
from geogrid_rank.core.models import DistanceUnit, SearchPage
from geogrid_rank.core.orchestrator import GridSearchRunner
from geogrid_rank.jobs import run_grid

from conftest import DummyProvider, make_items


@pytest.fixture
def fake_runner(monkeypatch):
    provider = DummyProvider(handler=lambda *args: SearchPage(make_items(["https://example.com"]), 1))
    settings = Settings(serper_api_key="key", grid_batch_pause_seconds=0)
    monkeypatch.setattr(run_grid, "get_settings", lambda: settings)
    monkeypatch.setattr(
        run_grid, "GridSearchRunner", lambda settings: GridSearchRunner(settings=settings, provider=provider)
    )
    return provider


def test_run_grid_job_searches_every_point(fake_runner, tmp_path):
    csv_path = tmp_path / "report.csv"

    report = run_grid.run_grid_job(
        latitude=40.0,
        longitude=-74.0,
        keyword="plumber",
        target="example.com",
        spacing=1,
        grid_size=3,
        unit=DistanceUnit.MILES,
        csv_path=csv_path,
    )

    assert report.total_points == 9
    assert report.summary.found_count == 9
    assert len(fake_runner.calls) == 9
    assert "# Grid Size: 3x3" in csv_path.read_text(encoding="utf-8")


@pytest.mark.parametrize("latitude, spacing", [(91.0, 1), (0.0, float("nan")), (0.0, 0)])
def test_run_grid_job_rejects_bad_center_or_spacing(fake_runner, latitude, spacing):
    with pytest.raises(ValueError):
        run_grid.run_grid_job(
            latitude=latitude,
            longitude=0.0,
            keyword="plumber",
            target="example.com",
            spacing=spacing,
            grid_size=3,
            unit=DistanceUnit.MILES,
        )
    assert fake_runner.calls == []


def test_build_parser_defaults(monkeypatch):
    monkeypatch.setattr(run_grid, "get_settings", lambda: Settings(default_country_code="ca"))
    parser = run_grid.build_parser()
    args = parser.parse_args(["--lat", "1", "--lng", "2", "--keyword", "plumber", "--target", "x.com"])

    assert isinstance(parser, argparse.ArgumentParser)
    assert args.grid_size == 7
    assert args.unit is DistanceUnit.MILES
    assert args.country == "ca"


def test_main_prints_report(fake_runner, monkeypatch, capsys):
    monkeypatch.setattr(
        "sys.argv",
        ["geogrid-rank", "--lat", "40", "--lng", "-74", "--keyword", "plumber", "--target", "example.com",
         "--grid-size", "3", "--unit", "meters", "--spacing", "500"],
    )

    run_grid.main()

    body = json.loads(capsys.readouterr().out)
    assert body["totalPoints"] == 9
    assert body["summary"]["top3Percent"] == 100
