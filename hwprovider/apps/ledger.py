"""APDU encoding for the MultiversX Ledger app."""

from __future__ import annotations

import logging

from hwprovider.core.errors import DeviceIOError, DeviceStatusError
from hwprovider.core.model import AddressSignature, AppConfiguration, DeviceAddress
from hwprovider.transports.base import Transport

CLA = 0xED

INS_GET_APP_CONFIGURATION = 0x02
INS_GET_ADDRESS = 0x03
INS_SIGN_TX = 0x04
INS_SET_ADDRESS = 0x05
INS_SIGN_MESSAGE = 0x06
INS_SIGN_TX_HASH = 0x07
INS_GET_ADDR_AUTH_TOKEN = 0x09

P1_FIRST = 0x00
P1_MORE = 0x80
P1_CONFIRM = 0x01
P1_NON_CONFIRM = 0x00

MAX_CHUNK_SIZE = 150
SIGNATURE_LENGTH = 64
SW_OK = 0x9000

STATUS_REASONS = {
    0x5515: "device is locked",
    0x6985: "request was rejected on the device",
    0x6D00: "instruction not supported by the open app",
    0x6E00: "class not supported, is the app open?",
    0x6E01: "invalid arguments",
    0x6E02: "invalid message",
    0x6E03: "invalid P1",
    0x6E07: "message too long",
    0x6E10: "signature failed",
}

LOGGER = logging.getLogger(__name__)


class LedgerApp:
    """Device command handle speaking to the app over any ``Transport``."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def _send(self, ins: int, p1: int = 0x00, p2: int = 0x00, data: bytes = b"") -> bytes:
        apdu = bytes([CLA, ins, p1, p2, len(data)]) + data
        LOGGER.debug("=> %s", apdu.hex())
        response = self.transport.exchange(apdu)
        LOGGER.debug("<= %s", response.hex())
        if len(response) < 2:
            raise DeviceIOError(f"Device reply of {len(response)} byte(s) has no status word")
        status = int.from_bytes(response[-2:], "big")
        if status != SW_OK:
            raise DeviceStatusError(status, STATUS_REASONS.get(status))
        return response[:-2]

    def _send_chunked(self, ins: int, payload: bytes) -> bytes:
        response = b""
        offset = 0
        while offset < len(payload):
            chunk = payload[offset : offset + MAX_CHUNK_SIZE]
            response = self._send(ins, P1_FIRST if offset == 0 else P1_MORE, 0x00, chunk)
            offset += len(chunk)
        return response

    def _sign(self, ins: int, payload: bytes) -> str:
        response = self._send_chunked(ins, payload)
        if len(response) != SIGNATURE_LENGTH + 1 or response[0] != SIGNATURE_LENGTH:
            raise DeviceIOError("Invalid signature received from device")
        return response[1:].hex()

    @staticmethod
    def _account_index(account: int, index: int) -> bytes:
        return account.to_bytes(4, "big") + index.to_bytes(4, "big")

    def get_address(self, account: int, index: int, display: bool = False) -> DeviceAddress:
        response = self._send(
            INS_GET_ADDRESS,
            P1_CONFIRM if display else P1_NON_CONFIRM,
            0x00,
            self._account_index(account, index),
        )
        if not response or len(response) < 1 + response[0]:
            raise DeviceIOError(f"Address reply too short: {response.hex()}")
        length = response[0]
        return DeviceAddress(address=response[1 : 1 + length].decode("ascii"))

    def set_address(self, account: int, index: int, display: bool = False) -> None:
        self._send(
            INS_SET_ADDRESS,
            P1_CONFIRM if display else P1_NON_CONFIRM,
            0x00,
            self._account_index(account, index),
        )

    def get_app_configuration(self) -> AppConfiguration:
        response = self._send(INS_GET_APP_CONFIGURATION)
        if len(response) < 6:
            raise DeviceIOError(f"App configuration reply too short: {response.hex()}")
        return AppConfiguration(
            version=f"{response[3]}.{response[4]}.{response[5]}",
            contract_data=response[0],
            account_index=response[1],
            address_index=response[2],
        )

    def sign_transaction(self, payload: bytes, using_hash: bool) -> str:
        return self._sign(INS_SIGN_TX_HASH if using_hash else INS_SIGN_TX, payload)

    def sign_message(self, payload: bytes) -> str:
        return self._sign(INS_SIGN_MESSAGE, len(payload).to_bytes(4, "big") + payload)

    def get_address_and_sign_auth_token(self, account: int, index: int, token: bytes) -> AddressSignature:
        payload = self._account_index(account, index) + len(token).to_bytes(4, "big") + token
        response = self._send_chunked(INS_GET_ADDR_AUTH_TOKEN, payload)
        if not response or len(response) < 2 + response[0]:
            raise DeviceIOError(f"Auth token reply too short: {response.hex()}")
        address_length = response[0]
        address = response[1 : 1 + address_length].decode("ascii")
        signature_length = response[1 + address_length]
        start = 2 + address_length
        signature = response[start : start + signature_length]
        if signature_length != SIGNATURE_LENGTH or len(signature) != SIGNATURE_LENGTH:
            raise DeviceIOError("Invalid auth token signature received from device")
        return AddressSignature(address=address, signature=signature.hex())
