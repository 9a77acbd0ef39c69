"""Legacy U2F transport: APDUs tunnelled through FIDO U2F authenticate requests.

Older firmware only talks through the FIDO HID interface. ledgerblue's U2F
dongle scrambles each APDU with the per-app key and carries it in the key
handle of an authenticate command.
"""

from __future__ import annotations

from typing import Any

from hwprovider.core.errors import TransportConnectError, TransportSendError
from hwprovider.core.model import TransportSettings
from hwprovider.transports.dongle import exchange_with_dongle, ledgerblue_module

FIDO_USAGE_PAGE = 0xF1D0


def _hid() -> Any:
    try:
        import hid  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError("U2F transport requires 'hidapi'. Install dependency and retry.") from exc
    return hid


def _find_fido_path(settings: TransportSettings) -> bytes | None:
    for entry in _hid().enumerate(settings.usb_vendor_id, 0):
        if entry.get("usage_page") == FIDO_USAGE_PAGE:
            return entry["path"]
    return None


class U2FTransport:
    transport_type = "u2f"

    def __init__(self, dongle: Any, comm_exception: type[Exception]) -> None:
        self._dongle = dongle
        self._comm_exception = comm_exception
        self._open = True

    @classmethod
    def is_supported(cls, settings: TransportSettings) -> bool:
        try:
            return _find_fido_path(settings) is not None
        except Exception:
            return False

    @classmethod
    def create(cls, settings: TransportSettings) -> U2FTransport:
        if _find_fido_path(settings) is None:
            raise TransportConnectError("No FIDO U2F HID interface found")
        comm_u2f = ledgerblue_module("commU2F")
        comm_exception = ledgerblue_module("commException").CommException
        try:
            dongle = comm_u2f.getDongle(scrambleKey=settings.u2f_scramble_key, debug=False)
        except (comm_exception, OSError) as exc:
            raise TransportConnectError(f"Could not open U2F device: {exc}") from exc
        return cls(dongle, comm_exception)

    @property
    def is_open(self) -> bool:
        return self._open

    def exchange(self, apdu: bytes) -> bytes:
        if not self._open:
            raise TransportSendError("U2F transport is closed")
        return exchange_with_dongle(self._dongle, apdu, self._comm_exception, "U2F")

    def close(self) -> None:
        if self._open:
            self._open = False
            self._dongle.close()
