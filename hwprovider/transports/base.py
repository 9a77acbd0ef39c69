"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from hwprovider.core.model import TransportSettings


class Transport(Protocol):
    transport_type: str

    @property
    def is_open(self) -> bool:
        """True while the physical channel is usable."""

    def exchange(self, apdu: bytes) -> bytes:
        """Send one APDU and return the full reply, status word included."""

    def close(self) -> None:
        """Release the physical channel."""


class TransportFactory(Protocol):
    transport_type: str

    def is_supported(self, settings: TransportSettings) -> bool:
        """Cheap probe: can this channel work on this host right now."""

    def create(self, settings: TransportSettings) -> Transport:
        """Open the channel or raise a ``TransportError``."""
