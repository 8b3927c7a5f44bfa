"""Export catalog views to JSON files for a static frontend."""

import json
import logging
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path

from catalog.config import EXPORT_DIR
from catalog.engine.classification import Tier, classify, platform_stats
from catalog.engine.costs import Comparison, cost_share
from catalog.records import ModelRecord

logger = logging.getLogger(__name__)


def _write_json(path: Path, data: object) -> Path:
    """Write data as formatted JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    return path


def export_models(
    models: list[ModelRecord],
    output_dir: Path | None = None,
) -> Path:
    """Export a model list to models.json, keeping the given order."""
    if output_dir is None:
        output_dir = EXPORT_DIR

    rows = [m.model_dump(mode="json") for m in models]
    path = _write_json(output_dir / "models.json", rows)
    logger.info("Exported %d models to %s", len(rows), path)
    return path


def export_tiers(
    models: list[ModelRecord],
    output_dir: Path | None = None,
) -> Path:
    """Export tier membership (model ids per tier) to tiers.json."""
    if output_dir is None:
        output_dir = EXPORT_DIR

    tiers = classify(models)
    data = {tier.value: [m.id for m in tiers[tier]] for tier in Tier}
    path = _write_json(output_dir / "tiers.json", data)
    logger.info("Exported tiers to %s", path)
    return path


def export_stats(
    models: list[ModelRecord],
    output_dir: Path | None = None,
) -> Path:
    """Export headline catalog numbers to stats.json."""
    if output_dir is None:
        output_dir = EXPORT_DIR

    path = _write_json(output_dir / "stats.json", asdict(platform_stats(models)))
    logger.info("Exported platform stats to %s", path)
    return path


def export_comparison(
    comparison: Comparison,
    output_dir: Path | None = None,
) -> Path:
    """Export a cost comparison to comparison.json."""
    if output_dir is None:
        output_dir = EXPORT_DIR

    rows = []
    for entry, share in zip(comparison.entries, cost_share(comparison.entries), strict=True):
        row = entry.to_dict()
        row["cost_share_pct"] = round(share, 2)
        rows.append(row)

    data = {
        "entries": rows,
        "by_value": [e.model.id for e in comparison.by_value],
        "units": comparison.units,
        "mixed_units": comparison.mixed_units,
        "unpriced": [m.id for m in comparison.unpriced],
    }
    path = _write_json(output_dir / "comparison.json", data)
    logger.info("Exported comparison of %d models to %s", len(rows), path)
    return path


def export_metadata(output_dir: Path | None = None, source_url: str | None = None) -> Path:
    """Export run metadata to metadata.json."""
    if output_dir is None:
        output_dir = EXPORT_DIR

    metadata = {"updated_at": datetime.now(UTC).isoformat(), "source_url": source_url}
    path = _write_json(output_dir / "metadata.json", metadata)
    logger.info("Exported metadata to %s", path)
    return path


def export_all(
    models: list[ModelRecord],
    output_dir: Path | None = None,
    comparison: Comparison | None = None,
    source_url: str | None = None,
) -> dict[str, Path]:
    """Export every view of *models* to JSON files."""
    result: dict[str, Path] = {
        "models": export_models(models, output_dir),
        "tiers": export_tiers(models, output_dir),
        "stats": export_stats(models, output_dir),
        "metadata": export_metadata(output_dir, source_url=source_url),
    }
    if comparison is not None:
        result["comparison"] = export_comparison(comparison, output_dir)
    return result
