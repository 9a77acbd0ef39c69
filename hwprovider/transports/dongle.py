"""Glue between the transports and ledgerblue.

ledgerblue dongles strip the status word on success and raise
``CommException`` otherwise; ``exchange_with_dongle`` hands the command layer
the raw reply with its status word in both cases. The packet helpers reuse
ledgerblue's channel framing for links it has no dongle class for.
"""

from __future__ import annotations

import importlib
from typing import Any

from hwprovider.core.errors import FramingError, TransportConnectError, TransportSendError

HID_CHANNEL = 0x0101
HID_PACKET_SIZE = 64
SW_OK = b"\x90\x00"
# BLE frames are HID frames without the 2-byte channel id.
_CHANNEL_SIZE = 2


def ledgerblue_module(name: str) -> Any:
    try:
        return importlib.import_module(f"ledgerblue.{name}")
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError("Ledger transports require 'ledgerblue'. Install dependency and retry.") from exc


def exchange_with_dongle(dongle: Any, apdu: bytes, comm_exception: type[Exception], label: str) -> bytes:
    """Send ``apdu`` through a ledgerblue dongle and return the reply including its status word."""
    try:
        response = dongle.exchange(bytearray(apdu))
    except comm_exception as exc:
        data = getattr(exc, "data", None)
        if data is None:
            raise TransportSendError(f"{label} exchange failed: {exc}") from exc
        return bytes(data) + int(exc.sw).to_bytes(2, "big")
    except OSError as exc:
        raise TransportSendError(f"{label} exchange failed: {exc}") from exc
    return bytes(response) + SW_OK


def command_packets(apdu: bytes, packet_size: int, *, ble: bool = False) -> list[bytes]:
    """Split ``apdu`` into link packets of at most ``packet_size`` bytes."""
    wrapper = ledgerblue_module("ledgerWrapper")
    if ble:
        step = packet_size + _CHANNEL_SIZE
        wrapped = bytes(wrapper.wrapCommandAPDU(0, bytearray(apdu), step))
        return [wrapped[i + _CHANNEL_SIZE : i + step] for i in range(0, len(wrapped), step)]

    wrapped = bytes(wrapper.wrapCommandAPDU(HID_CHANNEL, bytearray(apdu), packet_size))
    wrapped += bytes(-len(wrapped) % packet_size)
    return [wrapped[i : i + packet_size] for i in range(0, len(wrapped), packet_size)]


def reply_from_packets(packets: list[bytes], packet_size: int, *, ble: bool = False) -> bytes | None:
    """Return the reassembled reply once ``packets`` hold all of it, else None."""
    wrapper = ledgerblue_module("ledgerWrapper")
    comm_exception = ledgerblue_module("commException").CommException
    if ble:
        step = packet_size + _CHANNEL_SIZE
        channel = 0
        data = b"".join((bytes(_CHANNEL_SIZE) + p).ljust(step, b"\x00") for p in packets)
    else:
        step = packet_size
        channel = HID_CHANNEL
        data = b"".join(bytes(p).ljust(step, b"\x00") for p in packets)
    try:
        reply = wrapper.unwrapResponseAPDU(channel, bytearray(data), step)
    except comm_exception as exc:
        raise FramingError(f"Malformed reply packets: {exc}") from exc
    return None if reply is None else bytes(reply)
