"""
logistics_config -- single public entrypoint for back-office settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``. Returns a frozen ``SettingsSnapshot`` whose
    checksum identifies the exact file contents it was built from.

Architecture position:
    Configuration -- sits above ``logistics_kernel`` and
    ``logistics_engines`` and below ``logistics_services``. The kernel MUST
    NEVER import from ``logistics_config``; ``bridges`` translates settings
    into engine inputs.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``ValueError`` / ``KeyError`` -- the file is structurally invalid.

Every successful call emits a ``LOGISTICS_CONFIG_TRACE`` log entry with
the settings id, version, checksum and the configured currencies.
"""

from __future__ import annotations

from pathlib import Path

from logistics_config.loader import load_settings
from logistics_config.schema import RateDef, SettingsSnapshot, ToleranceDef
from logistics_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_SETTINGS_FILE = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "RateDef",
    "SettingsSnapshot",
    "ToleranceDef",
    "get_active_settings",
]


def get_active_settings(path: Path | None = None) -> SettingsSnapshot:
    """The ONLY public settings entrypoint.

    Args:
        path: Override path to a settings YAML file. Defaults to
            logistics_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the settings fail validation.
    """
    settings_file = path or _DEFAULT_SETTINGS_FILE
    if not settings_file.is_file():
        raise FileNotFoundError(f"Settings file not found: {settings_file}")

    settings = load_settings(settings_file)

    _logger.info(
        "LOGISTICS_CONFIG_TRACE",
        extra={
            "trace_type": "LOGISTICS_CONFIG_TRACE",
            "settings_id": settings.settings_id,
            "settings_version": settings.version,
            "checksum": settings.checksum,
            "reference_currency": settings.reference_currency,
            "currencies": [r.code for r in settings.rates],
            "rate_refresh_interval_seconds": settings.rate_refresh_interval_seconds,
        },
    )
    return settings
