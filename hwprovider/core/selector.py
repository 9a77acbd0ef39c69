"""Transport discovery with ordered fallback."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from hwprovider.core.errors import NoSupportedTransportError, TransportTypeUnavailableError
from hwprovider.core.model import TransportSettings
from hwprovider.transports.base import Transport, TransportFactory
from hwprovider.transports.ble_gatt import BLEGATTTransport
from hwprovider.transports.hid import HIDTransport
from hwprovider.transports.u2f import U2FTransport
from hwprovider.transports.usb import USBTransport

DEFAULT_CANDIDATES: tuple[TransportFactory, ...] = (USBTransport, BLEGATTTransport, HIDTransport, U2FTransport)

# Hosts whose Bluetooth stacks bleak can drive.
BLE_PLATFORMS = ("linux", "darwin", "win32")

LOGGER = logging.getLogger(__name__)


class TransportSelector:
    def __init__(
        self,
        settings: TransportSettings,
        *,
        candidates: Sequence[TransportFactory] = DEFAULT_CANDIDATES,
        host_platform: str = sys.platform,
    ) -> None:
        self.settings = settings
        self.candidates = tuple(candidates)
        self.host_platform = host_platform
        self._handle: Transport | None = None

    @property
    def handle(self) -> Transport | None:
        return self._handle

    def _platform_allows(self, candidate: TransportFactory) -> bool:
        if candidate.transport_type == "ble":
            return any(self.host_platform.startswith(name) for name in BLE_PLATFORMS)
        return True

    def _probe(self, candidate: TransportFactory) -> bool:
        return self._platform_allows(candidate) and candidate.is_supported(self.settings)

    def supported_types(self) -> list[str]:
        supported: list[str] = []
        for candidate in self.candidates:
            try:
                if self._probe(candidate):
                    supported.append(candidate.transport_type)
            except Exception as exc:
                LOGGER.warning("Support probe for %s transport failed: %s", candidate.transport_type, exc)
        return supported

    def select(self, transport_type: str | None = None) -> Transport:
        """Return an open transport, probing candidates only on the first call.

        With ``transport_type`` only that candidate is attempted and any
        failure raises ``TransportTypeUnavailableError``. Otherwise candidates
        are tried in order and a failing one is skipped.
        """
        if self._handle is not None:
            return self._handle
        if transport_type is not None:
            self._handle = self._select_explicit(transport_type)
        else:
            self._handle = self._select_first_available()
        LOGGER.info("Using %s transport", self._handle.transport_type)
        return self._handle

    def _select_explicit(self, transport_type: str) -> Transport:
        matching = [c for c in self.candidates if c.transport_type == transport_type]
        if not matching:
            known = ", ".join(c.transport_type for c in self.candidates)
            raise TransportTypeUnavailableError(f"Unknown transport type '{transport_type}'. Known: {known}")

        candidate = matching[0]
        try:
            supported = self._probe(candidate)
        except Exception as exc:
            raise TransportTypeUnavailableError(f"Transport '{transport_type}' support probe failed: {exc}") from exc
        if not supported:
            raise TransportTypeUnavailableError(f"Transport '{transport_type}' is not supported on this host")
        try:
            return candidate.create(self.settings)
        except Exception as exc:
            raise TransportTypeUnavailableError(f"Transport '{transport_type}' could not be created: {exc}") from exc

    def _select_first_available(self) -> Transport:
        reasons: list[str] = []
        for candidate in self.candidates:
            name = candidate.transport_type
            try:
                if not self._probe(candidate):
                    reasons.append(f"{name} -> unsupported")
                    continue
                return candidate.create(self.settings)
            except Exception as exc:
                LOGGER.warning("Could not open %s transport, trying next: %s", name, exc)
                reasons.append(f"{name} -> {exc}")

        joined = " | ".join(reasons) if reasons else "no candidates configured"
        raise NoSupportedTransportError(f"No supported transport found. Details: {joined}")

    def close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
