"""Firmware capability resolution from a version threshold table."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from hwprovider.core.device import DeviceApp
from hwprovider.core.errors import ProfileValidationError
from hwprovider.core.model import CapabilitySet
from hwprovider.core.versioning import compare_versions, parse_version

FEATURE_SIGN_USING_HASH = "sign_using_hash"
FEATURE_GUARDIAN = "guardian"
REQUIRED_FEATURES = (FEATURE_SIGN_USING_HASH, FEATURE_GUARDIAN)

DEFAULT_THRESHOLDS = {
    # From this version the app only signs a hash of the transaction (options bit 0).
    FEATURE_SIGN_USING_HASH: "1.0.11",
    # From this version the app accepts guarded transactions (options bit 1).
    FEATURE_GUARDIAN: "1.0.22",
}

LOGGER = logging.getLogger(__name__)


class CapabilityResolver:
    def __init__(self, thresholds: Mapping[str, str] | None = None) -> None:
        table = dict(DEFAULT_THRESHOLDS if thresholds is None else thresholds)
        missing = [name for name in REQUIRED_FEATURES if name not in table]
        if missing:
            raise ProfileValidationError(f"Capability table is missing thresholds for: {', '.join(missing)}")
        for name, min_version in table.items():
            parse_version(min_version)
        self.thresholds = table

    def enabled_features(self, version: str) -> frozenset[str]:
        return frozenset(
            name for name, min_version in self.thresholds.items() if compare_versions(version, min_version) >= 0
        )

    def resolve(self, app: DeviceApp) -> CapabilitySet:
        """Query the attached firmware and derive its capability set.

        The result is never cached: the firmware can change between calls
        when a different device is plugged in.
        """
        version = app.get_app_configuration().version
        enabled = self.enabled_features(version)
        must_sign_using_hash = FEATURE_SIGN_USING_HASH in enabled
        capabilities = CapabilitySet(
            reported_version=version,
            must_sign_using_hash=must_sign_using_hash,
            # Shares the hash-signing gate; kept separate because it drives a different field.
            must_use_versioned_options_field=must_sign_using_hash,
            supports_guardian_option=FEATURE_GUARDIAN in enabled,
        )
        LOGGER.debug("Resolved capabilities for app v%s: %s", version, capabilities)
        return capabilities
