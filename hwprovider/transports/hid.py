"""HID transport implementation using hidapi and ledgerblue."""

from __future__ import annotations

from typing import Any

from hwprovider.core.errors import TransportConnectError, TransportSendError
from hwprovider.core.model import TransportSettings
from hwprovider.transports.dongle import exchange_with_dongle, ledgerblue_module


def _hid() -> Any:
    try:
        import hid  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError("HID transport requires 'hidapi'. Install dependency and retry.") from exc
    return hid


def _find_ledger_path(settings: TransportSettings) -> bytes | None:
    for entry in _hid().enumerate(settings.usb_vendor_id, 0):
        # Some platforms do not report usage pages; interface 0 is the APDU interface.
        if entry.get("usage_page") == settings.hid_usage_page or entry.get("interface_number") == 0:
            return entry["path"]
    return None


class HIDTransport:
    transport_type = "hid"

    def __init__(self, dongle: Any, comm_exception: type[Exception]) -> None:
        self._dongle = dongle
        self._comm_exception = comm_exception
        self._open = True

    @classmethod
    def is_supported(cls, settings: TransportSettings) -> bool:
        try:
            return _find_ledger_path(settings) is not None
        except Exception:
            return False

    @classmethod
    def create(cls, settings: TransportSettings) -> HIDTransport:
        path = _find_ledger_path(settings)
        if path is None:
            raise TransportConnectError(f"No HID device with vendor id 0x{settings.usb_vendor_id:04x}")
        comm = ledgerblue_module("comm")
        comm_exception = ledgerblue_module("commException").CommException
        device = _hid().device()
        try:
            device.open_path(path)
            device.set_nonblocking(True)
        except OSError as exc:
            raise TransportConnectError(f"Could not open HID device {path!r}: {exc}") from exc
        return cls(comm.HIDDongleHIDAPI(device, True, False), comm_exception)

    @property
    def is_open(self) -> bool:
        return self._open

    def exchange(self, apdu: bytes) -> bytes:
        if not self._open:
            raise TransportSendError("HID transport is closed")
        return exchange_with_dongle(self._dongle, apdu, self._comm_exception, "HID")

    def close(self) -> None:
        if self._open:
            self._open = False
            self._dongle.close()
