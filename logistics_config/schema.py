"""
Settings schema.

Typed, frozen view of a settings YAML file. The loader parses raw YAML into
these types; ``logistics_config.bridges`` turns them into engine inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class RateDef:
    """One secondary currency quoted against the reference currency."""

    code: str
    rate_to_cfa: Decimal


@dataclass(frozen=True)
class ToleranceDef:
    threshold: Decimal
    large: Decimal
    small: Decimal


@dataclass(frozen=True)
class SettingsSnapshot:
    """Everything the back office reads from configuration, with its checksum."""

    settings_id: str
    version: int
    reference_currency: str
    rates: tuple[RateDef, ...]
    tolerance: ToleranceDef
    rate_refresh_interval_seconds: int
    capabilities: dict[str, frozenset[str]] = field(default_factory=dict)
    checksum: str = ""

    def rate_rows(self) -> list[dict[str, object]]:
        """Rates in the ``GET /rates`` row shape."""
        return [{"code": r.code, "rate_to_cfa": r.rate_to_cfa} for r in self.rates]
