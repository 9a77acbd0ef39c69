from __future__ import annotations

import pytest

from hwprovider.core.model import AddressSignature, AppConfiguration, DeviceAddress

ALICE = "erd1qyu5wthldzr8wx5c9ucg8kjagg0jfs53s8nr3zpz3hypefsdd8ssycr6th"
BOB = "erd1spyavw0956vq68xj8y4tenjpq2wd5a9p2c6j8gsz7ztyrnpxrruqzu66jx"


class FakeDeviceApp:
    def __init__(self) -> None:
        self.version = "1.0.22"
        self.address = ALICE
        self.transaction_signatures: list[str] = []
        self.message_signature = ""
        self.auth_token_signature = ""
        self.calls: list[tuple] = []

    def get_address(self, account: int, index: int, display: bool = False) -> DeviceAddress:
        self.calls.append(("get_address", account, index, display))
        return DeviceAddress(address=f"{self.address}#{index}" if index else self.address)

    def set_address(self, account: int, index: int, display: bool = False) -> None:
        self.calls.append(("set_address", account, index, display))

    def get_app_configuration(self) -> AppConfiguration:
        self.calls.append(("get_app_configuration",))
        return AppConfiguration(version=self.version, contract_data=1, account_index=0, address_index=0)

    def sign_transaction(self, payload: bytes, using_hash: bool) -> str:
        self.calls.append(("sign_transaction", payload, using_hash))
        return self.transaction_signatures.pop(0) if self.transaction_signatures else ""

    def sign_message(self, payload: bytes) -> str:
        self.calls.append(("sign_message", payload))
        return self.message_signature

    def get_address_and_sign_auth_token(self, account: int, index: int, token: bytes) -> AddressSignature:
        self.calls.append(("get_address_and_sign_auth_token", account, index, token))
        return AddressSignature(address=self.address, signature=self.auth_token_signature)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def device_app() -> FakeDeviceApp:
    return FakeDeviceApp()
