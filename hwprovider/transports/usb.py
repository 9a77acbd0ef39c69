"""USB transport implementation using pyusb."""

from __future__ import annotations

from typing import Any

from hwprovider.core.errors import TransportConnectError, TransportSendError
from hwprovider.core.model import TransportSettings
from hwprovider.transports.dongle import HID_PACKET_SIZE, command_packets, reply_from_packets

_VENDOR_SPECIFIC_CLASS = 0xFF


def _usb_modules() -> tuple[Any, Any]:
    try:
        import usb.core  # type: ignore
        import usb.util  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError("USB transport requires 'pyusb'. Install dependency and retry.") from exc
    return usb.core, usb.util


class USBTransport:
    transport_type = "usb"

    def __init__(self, device: Any, interface_number: int, endpoint_out: Any, endpoint_in: Any) -> None:
        self._device = device
        self._interface_number = interface_number
        self._endpoint_out = endpoint_out
        self._endpoint_in = endpoint_in
        self._open = True

    @classmethod
    def is_supported(cls, settings: TransportSettings) -> bool:
        try:
            usb_core, _ = _usb_modules()
            return usb_core.find(idVendor=settings.usb_vendor_id) is not None
        except Exception:
            # Missing library or libusb backend means the channel is unavailable.
            return False

    @classmethod
    def create(cls, settings: TransportSettings) -> USBTransport:
        usb_core, usb_util = _usb_modules()
        device = usb_core.find(idVendor=settings.usb_vendor_id)
        if device is None:
            raise TransportConnectError(f"No USB device with vendor id 0x{settings.usb_vendor_id:04x}")

        try:
            device.set_configuration()
            config = device.get_active_configuration()
            interface = usb_util.find_descriptor(config, bInterfaceClass=_VENDOR_SPECIFIC_CLASS)
            if interface is None:
                raise TransportConnectError("USB device exposes no vendor-specific interface")
            usb_util.claim_interface(device, interface.bInterfaceNumber)
            endpoint_out = usb_util.find_descriptor(
                interface,
                custom_match=lambda e: usb_util.endpoint_direction(e.bEndpointAddress) == usb_util.ENDPOINT_OUT,
            )
            endpoint_in = usb_util.find_descriptor(
                interface,
                custom_match=lambda e: usb_util.endpoint_direction(e.bEndpointAddress) == usb_util.ENDPOINT_IN,
            )
        except usb_core.USBError as exc:
            raise TransportConnectError(f"Could not open USB device: {exc}") from exc

        if endpoint_out is None or endpoint_in is None:
            raise TransportConnectError("USB interface is missing IN/OUT endpoints")
        return cls(device, interface.bInterfaceNumber, endpoint_out, endpoint_in)

    @property
    def is_open(self) -> bool:
        return self._open

    def exchange(self, apdu: bytes) -> bytes:
        if not self._open:
            raise TransportSendError("USB transport is closed")
        usb_core, _ = _usb_modules()
        try:
            for packet in command_packets(apdu, HID_PACKET_SIZE):
                self._endpoint_out.write(packet)
            packets: list[bytes] = []
            reply = None
            while reply is None:
                # timeout=0 blocks until the user confirms on the device.
                packets.append(bytes(self._endpoint_in.read(HID_PACKET_SIZE, timeout=0)))
                reply = reply_from_packets(packets, HID_PACKET_SIZE)
            return reply
        except usb_core.USBError as exc:
            raise TransportSendError(f"USB exchange failed: {exc}") from exc

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        _, usb_util = _usb_modules()
        try:
            usb_util.release_interface(self._device, self._interface_number)
        finally:
            usb_util.dispose_resources(self._device)
