"""
logistics_services.capabilities -- Role capability checks.

Responsibility:
    Answers "may this role do that?" from the capability table in the
    active settings, and turns a refusal into CapabilityDeniedError.

Architecture position:
    Services layer. Consumes SettingsSnapshot from logistics_config.
    Identity resolution stays with the caller, which supplies the role.
"""

from __future__ import annotations

from collections.abc import Mapping

from logistics_config.schema import SettingsSnapshot
from logistics_kernel.exceptions import CapabilityDeniedError
from logistics_kernel.logging_config import get_logger
from logistics_services.ports import CapabilityChecker

logger = get_logger("services.capabilities")

MANAGE_COSTS = "manage_costs"
VIEW_PROFITABILITY = "view_profitability"
CLOSE_JOURNEY = "close_journey"
CLOSE_WAVE = "close_wave"


class ConfiguredCapabilityChecker:
    """CapabilityChecker backed by a ``{role: capabilities}`` table."""

    def __init__(self, capabilities: Mapping[str, frozenset[str]]):
        self._capabilities = {role: frozenset(caps) for role, caps in capabilities.items()}

    @classmethod
    def from_settings(cls, settings: SettingsSnapshot) -> ConfiguredCapabilityChecker:
        return cls(settings.capabilities)

    def is_allowed(self, role: str, capability: str) -> bool:
        return capability in self._capabilities.get(role, frozenset())


def require_capability(checker: CapabilityChecker, role: str, capability: str) -> None:
    """Raise CapabilityDeniedError unless ``role`` holds ``capability``."""
    if not checker.is_allowed(role, capability):
        logger.warning("capability_denied", extra={"role": role, "capability": capability})
        raise CapabilityDeniedError(role, capability)
