"""Core data models used across the loader, signing flows, provider and CLI."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TransportSettings:
    usb_vendor_id: int
    hid_usage_page: int
    ble_service_uuid: str
    ble_write_char_uuid: str
    ble_notify_char_uuid: str
    ble_scan_timeout_s: float = 5.0
    u2f_scramble_key: str = ""


@dataclass(frozen=True)
class TransactionPolicy:
    version_with_options: int = 2
    hash_sign_option: int = 0b0001
    guarded_option: int = 0b0010


@dataclass(frozen=True)
class DeviceProfile:
    id: str
    name: str
    transport: TransportSettings
    capabilities: dict[str, str]
    transaction: TransactionPolicy


@dataclass(frozen=True)
class AppConfiguration:
    version: str
    contract_data: int
    account_index: int
    address_index: int


@dataclass(frozen=True)
class DeviceAddress:
    address: str


@dataclass(frozen=True)
class AddressSignature:
    address: str
    signature: str


@dataclass(frozen=True)
class CapabilitySet:
    reported_version: str
    must_sign_using_hash: bool
    must_use_versioned_options_field: bool
    supports_guardian_option: bool


@dataclass(frozen=True)
class IdentityProof:
    address: str
    signature: bytes
