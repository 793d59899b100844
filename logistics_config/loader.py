"""
Settings Loader (``logistics_config.loader``).

Responsibility
--------------
Loads a settings YAML file and parses it into ``logistics_config.schema``
dataclasses. Runtime callers go through
``logistics_config.get_active_settings()`` instead of calling this directly.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  settings identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-positive rate or negative tolerance  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from logistics_config.schema import RateDef, SettingsSnapshot, ToleranceDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, what: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{what} is not a number: {value!r}") from e


def parse_rate(data: dict[str, Any]) -> RateDef:
    code = str(data["code"]).strip().upper()
    rate = parse_decimal(data["rate_to_cfa"], f"rate_to_cfa for {code}")
    if rate <= 0:
        raise ValueError(f"rate_to_cfa for {code} must be positive, got {rate}")
    return RateDef(code=code, rate_to_cfa=rate)


def parse_tolerance(data: dict[str, Any]) -> ToleranceDef:
    tolerance = ToleranceDef(
        threshold=parse_decimal(data["threshold"], "tolerance.threshold"),
        large=parse_decimal(data["large"], "tolerance.large"),
        small=parse_decimal(data["small"], "tolerance.small"),
    )
    for name in ("threshold", "large", "small"):
        if getattr(tolerance, name) < 0:
            raise ValueError(f"tolerance.{name} cannot be negative")
    return tolerance


def parse_capabilities(data: dict[str, Any]) -> dict[str, frozenset[str]]:
    return {str(role): frozenset(str(c) for c in caps or ()) for role, caps in data.items()}


def parse_settings(data: dict[str, Any]) -> SettingsSnapshot:
    """Parse a whole settings document."""
    rates = tuple(parse_rate(r) for r in data.get("rates", []))
    codes = [r.code for r in rates]
    duplicates = sorted({c for c in codes if codes.count(c) > 1})
    if duplicates:
        raise ValueError(f"Duplicate rates for: {', '.join(duplicates)}")

    interval = int(data.get("rate_refresh_interval_seconds", 300))
    if interval < 0:
        raise ValueError("rate_refresh_interval_seconds cannot be negative")

    return SettingsSnapshot(
        settings_id=data["settings_id"],
        version=int(data.get("version", 1)),
        reference_currency=str(data.get("reference_currency", "CFA")).upper(),
        rates=rates,
        tolerance=parse_tolerance(data["tolerance"]),
        rate_refresh_interval_seconds=interval,
        capabilities=parse_capabilities(data.get("capabilities", {})),
        checksum=compute_checksum(data),
    )


def load_settings(path: Path) -> SettingsSnapshot:
    return parse_settings(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
