"""Device command interface consumed by the signing flows."""

from __future__ import annotations

from typing import Protocol

from hwprovider.core.model import AddressSignature, AppConfiguration, DeviceAddress


class DeviceApp(Protocol):
    def get_address(self, account: int, index: int, display: bool = False) -> DeviceAddress:
        """Derive the address at ``account``/``index``, optionally showing it on screen."""

    def set_address(self, account: int, index: int, display: bool = False) -> None:
        """Select the derivation slot used by subsequent signing commands."""

    def get_app_configuration(self) -> AppConfiguration:
        """Return the firmware-reported configuration, including its version."""

    def sign_transaction(self, payload: bytes, using_hash: bool) -> str:
        """Sign a serialized transaction and return the signature as hex."""

    def sign_message(self, payload: bytes) -> str:
        """Sign a raw message and return the signature as hex."""

    def get_address_and_sign_auth_token(self, account: int, index: int, token: bytes) -> AddressSignature:
        """Report the address at ``index`` and sign ``token`` with it in one round trip."""
