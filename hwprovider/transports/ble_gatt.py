"""BLE GATT transport implementation."""

from __future__ import annotations

import asyncio
from typing import Any

from hwprovider.core.errors import (
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
)
from hwprovider.core.model import TransportSettings
from hwprovider.transports.dongle import command_packets, reply_from_packets

_MTU_REQUEST = bytes.fromhex("0800000000")
_DEFAULT_MTU = 20


def _bleak() -> Any:
    try:
        import bleak  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError("BLE transport requires 'bleak'. Install dependency and retry.") from exc
    return bleak


class BLEGATTTransport:
    """Keeps one GATT connection open across exchanges.

    bleak clients are bound to the event loop they connected on, so the
    transport owns a private loop and runs every operation on it.
    """

    transport_type = "ble"

    def __init__(self, client: Any, loop: asyncio.AbstractEventLoop, settings: TransportSettings) -> None:
        self._client = client
        self._loop = loop
        self._settings = settings
        self._notifications: asyncio.Queue[bytes] = asyncio.Queue()
        self._mtu = _DEFAULT_MTU

    @classmethod
    def is_supported(cls, settings: TransportSettings) -> bool:
        try:
            _bleak()
        except TransportConnectError:
            return False
        return True

    @classmethod
    def create(cls, settings: TransportSettings) -> BLEGATTTransport:
        bleak = _bleak()
        loop = asyncio.new_event_loop()
        service_uuid = settings.ble_service_uuid.lower()

        async def _connect() -> Any:
            device = await bleak.BleakScanner.find_device_by_filter(
                lambda _, adv: service_uuid in [uuid.lower() for uuid in adv.service_uuids],
                timeout=settings.ble_scan_timeout_s,
            )
            if device is None:
                raise TransportConnectError(f"No BLE device advertising service {service_uuid}")
            client = bleak.BleakClient(device)
            await client.connect()
            if not client.is_connected:
                raise TransportConnectError(f"BLE connect failed for {device.address}")
            return client

        try:
            client = loop.run_until_complete(_connect())
            transport = cls(client, loop, settings)
            loop.run_until_complete(transport._start())
        except TransportError:
            loop.close()
            raise
        except Exception as exc:
            loop.close()
            raise TransportConnectError(f"BLE GATT connect failed: {exc}") from exc
        return transport

    async def _start(self) -> None:
        def _notify_handler(_: Any, data: bytearray) -> None:
            self._notifications.put_nowait(bytes(data))

        await self._client.start_notify(self._settings.ble_notify_char_uuid, _notify_handler)
        await self._client.write_gatt_char(self._settings.ble_write_char_uuid, _MTU_REQUEST, response=True)
        try:
            reply = await asyncio.wait_for(self._notifications.get(), timeout=self._settings.ble_scan_timeout_s)
        except asyncio.TimeoutError as exc:
            raise TransportTimeoutError("Timed out waiting for the BLE MTU negotiation reply") from exc
        if len(reply) > 5 and reply[0] == _MTU_REQUEST[0]:
            self._mtu = reply[5]

    @property
    def is_open(self) -> bool:
        return not self._loop.is_closed() and bool(self._client.is_connected)

    def exchange(self, apdu: bytes) -> bytes:
        if not self.is_open:
            raise TransportSendError("BLE transport is closed")

        async def _run() -> bytes:
            for packet in command_packets(apdu, self._mtu, ble=True):
                await self._client.write_gatt_char(self._settings.ble_write_char_uuid, packet, response=True)
            packets: list[bytes] = []
            reply = None
            while reply is None:
                # Waits without a deadline: the reply arrives after on-device confirmation.
                packets.append(await self._notifications.get())
                reply = reply_from_packets(packets, self._mtu, ble=True)
            return reply

        try:
            return self._loop.run_until_complete(_run())
        except TransportError:
            raise
        except Exception as exc:
            raise TransportSendError(f"BLE GATT exchange failed: {exc}") from exc

    def close(self) -> None:
        if self._loop.is_closed():
            return

        async def _disconnect() -> None:
            try:
                await self._client.stop_notify(self._settings.ble_notify_char_uuid)
            finally:
                await self._client.disconnect()

        try:
            self._loop.run_until_complete(_disconnect())
        finally:
            self._loop.close()
