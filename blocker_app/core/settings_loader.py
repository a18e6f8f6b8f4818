"""Load engine threshold overrides from YAML (with fallbacks to the defaults)."""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import pytz
import yaml

from .config import (
    PERFORMANCE_TIERS,
    SETTINGS,
    BadgeSettings,
    ConfigurationError,
    EngineSettings,
    ImprovementSettings,
    InsightSettings,
    ScoringWeights,
    TierThreshold,
)

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "analytics.yaml"

# Fields holding a percentage that must stay within 0..100
_PERCENT_FIELDS = frozenset(
    {
        "excellence_rate",
        "high_performer_rate",
        "quality_champion_score",
        "high_volume_share_pct",
        "low_completion_rate",
        "low_quality_score",
        "min_completion_rate",
    }
)

_SECTIONS = {
    "weights": ScoringWeights,
    "badges": BadgeSettings,
    "insights": InsightSettings,
    "improvement": ImprovementSettings,
}


def _number(section: str, name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{section}.{name} must be a number, got {value!r}")
    if value < 0:
        raise ConfigurationError(f"{section}.{name} must be >= 0, got {value}")
    if name in _PERCENT_FIELDS and value > 100:
        raise ConfigurationError(f"{section}.{name} must be <= 100, got {value}")
    return value


def _apply_section(section: str, current, overrides: Any):
    if overrides is None:
        return current
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"{section} must be a mapping, got {type(overrides).__name__}")
    known = {f.name: f for f in fields(current)}
    unknown = sorted(set(overrides) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown {section} settings: {unknown}")
    values = {}
    for name, value in overrides.items():
        number = _number(section, name, value)
        # Fields annotated int (counts, badge caps) stay integers
        if known[name].type in (int, "int"):
            if float(number) != int(number):
                raise ConfigurationError(f"{section}.{name} must be a whole number, got {value}")
            number = int(number)
        values[name] = number
    return replace(current, **values)


def _parse_tiers(raw: Any) -> tuple[TierThreshold, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError("tiers must be a non-empty list")
    tiers = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"tier entries must be mappings, got {entry!r}")
        tier = entry.get("tier")
        if tier not in PERFORMANCE_TIERS:
            raise ConfigurationError(f"Unknown tier {tier!r}; expected one of {list(PERFORMANCE_TIERS)}")
        tiers.append(
            TierThreshold(
                tier=tier,
                min_completion_rate=_number("tiers", "min_completion_rate", entry.get("min_completion_rate")),
                max_avg_resolution_days=_number("tiers", "max_avg_resolution_days", entry.get("max_avg_resolution_days")),
            )
        )
    return tuple(tiers)


def settings_from_mapping(data: dict[str, Any], base: EngineSettings = SETTINGS) -> EngineSettings:
    """Overlay a parsed YAML mapping on ``base``, validating every value."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"settings must be a mapping, got {type(data).__name__}")
    unknown = sorted(set(data) - {"timezone", "tiers", *_SECTIONS})
    if unknown:
        raise ConfigurationError(f"Unknown settings sections: {unknown}")

    updates: dict[str, Any] = {}
    if "timezone" in data:
        tz = data["timezone"]
        if not isinstance(tz, str) or tz not in pytz.all_timezones_set:
            raise ConfigurationError(f"Unknown timezone {tz!r}")
        updates["timezone"] = tz
    if "tiers" in data:
        updates["tiers"] = _parse_tiers(data["tiers"])
    for section in _SECTIONS:
        if section in data:
            updates[section] = _apply_section(section, getattr(base, section), data[section])

    settings = replace(base, **updates)
    w = settings.weights
    if abs(w.completion + w.documentation + w.rejection - 1.0) > 1e-6:
        raise ConfigurationError("weights.completion + documentation + rejection must sum to 1")
    b = settings.badges
    if b.top_10_fraction > 1 or b.top_25_fraction > 1:
        raise ConfigurationError("badge percentile fractions must be <= 1")
    return settings


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """Read ``analytics.yaml`` overrides; defaults when the file is absent.

    ``path`` may point at the YAML file itself or at the directory holding
    it (the project root by default). Malformed YAML or invalid values raise
    ConfigurationError rather than silently falling back.
    """
    base = Path(path) if path else Path(__file__).resolve().parent.parent.parent
    yaml_path = base / SETTINGS_FILENAME if base.is_dir() else base
    if not yaml_path.exists():
        logger.debug("No settings file at %s; using defaults", yaml_path)
        return SETTINGS
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse {yaml_path}: {exc}") from exc
    settings = settings_from_mapping(data)
    logger.debug("Loaded settings overrides from %s", yaml_path)
    return settings
