"""Stable public API for building tooling on top of hwprovider.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from hwprovider.apps.ledger import LedgerApp
from hwprovider.core.batch import BatchSigner
from hwprovider.core.capabilities import CapabilityResolver
from hwprovider.core.device import DeviceApp
from hwprovider.core.envelope import Message, SignableMessage, SignableTransaction, Transaction
from hwprovider.core.errors import (
    BatchSigningError,
    CapabilityError,
    DeviceIOError,
    DeviceStatusError,
    HWProviderError,
    InvalidVersionFormatError,
    NoSupportedTransportError,
    NotInitializedError,
    ProfileLoadError,
    ProfileValidationError,
    TransportConnectError,
    TransportError,
    TransportSelectionError,
    TransportSendError,
    TransportTimeoutError,
    TransportTypeUnavailableError,
    UnsupportedGuardianFeatureError,
)
from hwprovider.core.identity import IdentityProofSigner
from hwprovider.core.model import (
    AppConfiguration,
    CapabilitySet,
    DeviceProfile,
    IdentityProof,
    TransactionPolicy,
    TransportSettings,
)
from hwprovider.core.profile_loader import load_profile, load_profiles
from hwprovider.core.provider import HWProvider
from hwprovider.core.selector import TransportSelector
from hwprovider.core.signing import SigningAdapter, SigningState
from hwprovider.core.versioning import compare_versions
from hwprovider.transports.base import Transport

__all__ = [
    "HWProviderError",
    "NotInitializedError",
    "TransportSelectionError",
    "NoSupportedTransportError",
    "TransportTypeUnavailableError",
    "InvalidVersionFormatError",
    "CapabilityError",
    "UnsupportedGuardianFeatureError",
    "DeviceIOError",
    "DeviceStatusError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "BatchSigningError",
    "ProfileLoadError",
    "ProfileValidationError",
    "AppConfiguration",
    "CapabilitySet",
    "DeviceProfile",
    "IdentityProof",
    "TransactionPolicy",
    "TransportSettings",
    "SignableTransaction",
    "SignableMessage",
    "Transaction",
    "Message",
    "DeviceApp",
    "LedgerApp",
    "Transport",
    "TransportSelector",
    "CapabilityResolver",
    "SigningAdapter",
    "SigningState",
    "BatchSigner",
    "IdentityProofSigner",
    "HWProvider",
    "compare_versions",
    "load_profile",
    "load_profiles",
]
