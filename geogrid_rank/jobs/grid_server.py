"""HTTP entrypoint for grid generation and grid rank searches."""

from __future__ import annotations

import logging
import math
import os
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from flask import Flask, Response, jsonify, request

from geogrid_rank.core.config import ConfigurationError, get_settings
from geogrid_rank.core.geogrid import generate_grid_for_config
from geogrid_rank.core.models import DistanceUnit, GridConfig, SearchMode
from geogrid_rank.core.orchestrator import GridSearchRunner, ValidationError
from geogrid_rank.core.tracker import check_keywords
from geogrid_rank.etl.transform import (
    grid_point_to_payload,
    keyword_ranking_to_payload,
    parse_grid_points,
    report_to_csv,
    report_to_payload,
)
from geogrid_rank.vendors.provider import ProviderError, get_provider

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; only reads env-based settings."""
    settings = get_settings()
    return jsonify({"status": "ok", "provider": settings.search_provider}), 200


@app.post("/grid")
def build_grid() -> Any:
    """
    Generate grid points around a center.
    Required JSON fields: latitude, longitude, spacing, gridSize
    Optional: distanceUnit ("meters" | "miles", default meters)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    required = ("latitude", "longitude", "spacing", "gridSize")
    missing = [f for f in required if payload.get(f) is None]
    if missing:
        return jsonify({"error": f"missing fields: {', '.join(missing)}"}), 400

    try:
        latitude = float(payload["latitude"])
        longitude = float(payload["longitude"])
        spacing = float(payload["spacing"])
        grid_size = int(payload["gridSize"])
        unit = DistanceUnit(str(payload.get("distanceUnit", "meters")).lower())
    except (TypeError, ValueError, OverflowError):
        return jsonify({"error": "latitude, longitude, spacing, gridSize and distanceUnit must be valid"}), 400

    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        return jsonify({"error": "Invalid coordinates"}), 400
    if not math.isfinite(spacing) or spacing <= 0 or grid_size <= 0:
        return jsonify({"error": "spacing and gridSize must be positive"}), 400

    config = GridConfig(spacing=spacing, grid_size=grid_size, distance_unit=unit)
    points = generate_grid_for_config(latitude, longitude, config)
    return jsonify({"points": [grid_point_to_payload(point) for point in points]}), 200


@app.post("/grid-search")
def grid_search() -> Any:
    """
    Run a grid rank search.
    Required JSON fields: gridPoints (non-empty list), keyword
    Optional: targetWebsite, country
    """
    report_or_error = _run_grid_search(request.get_json(silent=True) or {})
    if isinstance(report_or_error, tuple):
        return report_or_error
    return jsonify(report_to_payload(report_or_error)), 200


@app.post("/grid-search/export")
def grid_search_export() -> Any:
    """Same as /grid-search but answers with the CSV report."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    report_or_error = _run_grid_search(payload)
    if isinstance(report_or_error, tuple):
        return report_or_error

    grid_config = None
    raw_config = payload.get("gridConfig")
    if isinstance(raw_config, dict):
        try:
            grid_config = GridConfig(
                spacing=float(raw_config["spacing"]),
                grid_size=int(raw_config["gridSize"]),
                distance_unit=DistanceUnit(str(raw_config.get("distanceUnit", "meters")).lower()),
            )
        except (KeyError, TypeError, ValueError, OverflowError):
            logger.warning("Ignoring malformed gridConfig in export request: %s", raw_config)

    content = report_to_csv(
        report_or_error,
        generated_at=datetime.now(timezone.utc).isoformat(),
        grid_config=grid_config,
    )
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=local-search-grid-report.csv"},
    )


@app.post("/rankings/check")
def rankings_check() -> Any:
    """
    Check organic or local rankings for several keywords.
    Required JSON fields: keywords (non-empty list), targetWebsite
    Optional: country, mode
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    keywords = payload.get("keywords")
    if not isinstance(keywords, list) or not [k for k in keywords if isinstance(k, str) and k.strip()]:
        return jsonify({"error": "No keywords to check"}), 400
    target_website = payload.get("targetWebsite")
    if not target_website or not isinstance(target_website, str):
        return jsonify({"error": "Missing target website"}), 400
    try:
        mode = SearchMode(str(payload.get("mode", "organic")).lower())
    except ValueError:
        return jsonify({"error": "mode must be 'organic' or 'local'"}), 400

    country = payload.get("country")
    if country is not None and not isinstance(country, str):
        return jsonify({"error": "country must be a string"}), 400

    try:
        settings = get_settings()
        rankings = check_keywords(
            [k.strip() for k in keywords if isinstance(k, str) and k.strip()],
            target_website,
            country or settings.default_country_code,
            provider=get_provider(settings),
            mode=mode,
            max_pages=settings.search_max_pages,
        )
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return jsonify({"error": str(exc)}), 500

    checked_at = rankings[0].checked_at if rankings else None
    return jsonify({"checkedAt": checked_at, "rankings": [keyword_ranking_to_payload(r) for r in rankings]}), 200


# ---------- Internals ----------


def _run_grid_search(payload: Dict[str, Any]):
    grid_points = payload.get("gridPoints")
    if not grid_points or not isinstance(grid_points, list):
        return _error("Missing or invalid grid points", 400)

    keyword = payload.get("keyword")
    if not keyword or not isinstance(keyword, str) or not keyword.strip():
        return _error("Missing search keyword", 400)

    target_website = payload.get("targetWebsite") or ""
    if not isinstance(target_website, str):
        return _error("targetWebsite must be a string", 400)
    country = payload.get("country")
    if country is not None and not isinstance(country, str):
        return _error("country must be a string", 400)

    try:
        points = parse_grid_points(grid_points)
    except ValueError as exc:
        return _error(str(exc), 400)

    try:
        runner = GridSearchRunner(settings=get_settings())
        return runner.run(points, keyword, target_website, locale=country)
    except ValidationError as exc:
        return _error(str(exc), 400)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return _error(str(exc), 500)
    except ProviderError as exc:
        logger.error("Provider error during grid search: %s", exc)
        return _error(f"Search provider failure: {exc}", 502)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Grid search failed: %s", exc)
        return _error("Failed to perform grid search", 500)


def _error(message: str, status: int) -> Tuple[Any, int]:
    return jsonify({"error": message}), status


def main() -> None:
    """Bind on PORT when the platform injects it, else WORKER_PORT."""
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
