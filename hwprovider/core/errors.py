"""Domain-specific errors for hwprovider."""

from __future__ import annotations


class HWProviderError(Exception):
    """Base error for hwprovider."""


class NotInitializedError(HWProviderError):
    """Raised when an operation needs a device handle and none is bound."""

    def __init__(self, message: str = "Provider is not initialized. Call init() first.") -> None:
        super().__init__(message)


class ProfileValidationError(HWProviderError):
    """Raised when a device profile does not conform to schema or semantics."""


class ProfileLoadError(HWProviderError):
    """Raised when loading profile sources fails."""


class TransportSelectionError(HWProviderError):
    """Base error for transport discovery failures."""


class NoSupportedTransportError(TransportSelectionError):
    """Raised when every candidate transport is unsupported or fails to open."""


class TransportTypeUnavailableError(TransportSelectionError):
    """Raised when an explicitly requested transport cannot be created."""


class InvalidVersionFormatError(HWProviderError, ValueError):
    """Raised when a version string has a non-numeric component."""


class CapabilityError(HWProviderError):
    """Base error for firmware capability mismatches."""


class UnsupportedGuardianFeatureError(CapabilityError):
    """Raised when a guarded transaction is sent to firmware without guardian support."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"Device app v{version} does not support guarded transactions.")


class DeviceIOError(HWProviderError):
    """Base error for any failure while talking to the device."""


class DeviceStatusError(DeviceIOError):
    """Raised when the device answers a command with a non-success status word."""

    def __init__(self, status_word: int, reason: str | None = None) -> None:
        self.status_word = status_word
        detail = f": {reason}" if reason else ""
        super().__init__(f"Device returned status 0x{status_word:04x}{detail}")


class TransportError(DeviceIOError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when a physical channel cannot be opened."""


class TransportSendError(TransportError):
    """Raised when writing to or reading from an open channel fails."""


class TransportTimeoutError(TransportError):
    """Raised when a link-level operation times out."""


class FramingError(TransportError):
    """Raised when a device reply does not follow the packet framing rules."""


class BatchSigningError(HWProviderError):
    """Raised when a batch stops at a failing item.

    Items signed before the failure are kept on ``signed`` so the caller can
    decide whether to reuse or discard them.
    """

    def __init__(self, failed_index: int, signed: list) -> None:
        self.failed_index = failed_index
        self.signed = signed
        super().__init__(
            f"Signing stopped at item {failed_index}; {len(signed)} item(s) were signed before the failure"
        )

    @property
    def outcome(self) -> str:
        return "partially_signed" if self.signed else "failed_before_any"
