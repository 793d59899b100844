"""
Config -> Engine Bridges.

Functions that turn a SettingsSnapshot into engine inputs. They live here
because the kernel and engines must never import logistics_config.

Usage:
    from logistics_config.bridges import build_rate_table, build_tolerance_policy

    settings = get_active_settings()
    rates = build_rate_table(settings)
    policy = build_tolerance_policy(settings)
"""

from __future__ import annotations

from logistics_config.schema import SettingsSnapshot
from logistics_engines.settlement import TolerancePolicy
from logistics_kernel.domain.values import RateTable


def build_rate_table(settings: SettingsSnapshot) -> RateTable:
    return RateTable.from_rows(settings.rate_rows())


def build_tolerance_policy(settings: SettingsSnapshot) -> TolerancePolicy:
    t = settings.tolerance
    return TolerancePolicy(threshold=t.threshold, large=t.large, small=t.small)
