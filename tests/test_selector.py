from __future__ import annotations

import logging

import pytest

from hwprovider.core.errors import (
    NoSupportedTransportError,
    TransportConnectError,
    TransportTypeUnavailableError,
)
from hwprovider.core.model import TransportSettings
from hwprovider.core.selector import TransportSelector

SETTINGS = TransportSettings(
    usb_vendor_id=0x2C97,
    hid_usage_page=0xFFA0,
    ble_service_uuid="13d63400-2c97-0004-0000-4c6564676572",
    ble_write_char_uuid="13d63400-2c97-0004-0002-4c6564676572",
    ble_notify_char_uuid="13d63400-2c97-0004-0001-4c6564676572",
)


class FakeHandle:
    def __init__(self, transport_type: str) -> None:
        self.transport_type = transport_type
        self.is_open = True

    def exchange(self, apdu: bytes) -> bytes:
        return b"\x90\x00"

    def close(self) -> None:
        self.is_open = False


class FakeCandidate:
    def __init__(self, transport_type: str, *, supported: bool = True, fails: bool = False) -> None:
        self.transport_type = transport_type
        self.supported = supported
        self.fails = fails
        self.probes = 0
        self.creates = 0

    def is_supported(self, settings: TransportSettings) -> bool:
        self.probes += 1
        return self.supported

    def create(self, settings: TransportSettings) -> FakeHandle:
        self.creates += 1
        if self.fails:
            raise TransportConnectError(f"{self.transport_type} device busy")
        return FakeHandle(self.transport_type)


def _candidates(**overrides: dict) -> list[FakeCandidate]:
    return [FakeCandidate(name, **overrides.get(name, {})) for name in ("usb", "ble", "hid", "u2f")]


def test_first_supported_candidate_wins() -> None:
    candidates = _candidates()
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")

    handle = selector.select()

    assert handle.transport_type == "usb"
    assert [c.creates for c in candidates] == [1, 0, 0, 0]


def test_failing_candidate_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    candidates = _candidates(usb={"fails": True}, ble={"supported": False})
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")

    with caplog.at_level(logging.WARNING):
        handle = selector.select()

    assert handle.transport_type == "hid"
    assert "usb device busy" in caplog.text
    assert candidates[3].probes == 0


def test_ble_gated_by_host_platform() -> None:
    candidates = _candidates(usb={"supported": False})
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="emscripten")

    handle = selector.select()

    assert handle.transport_type == "hid"
    assert candidates[1].probes == 0


def test_nothing_available_raises() -> None:
    candidates = _candidates(usb={"fails": True}, ble={"supported": False}, hid={"supported": False}, u2f={"fails": True})
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")

    with pytest.raises(NoSupportedTransportError) as exc:
        selector.select()

    assert "usb -> usb device busy" in str(exc.value)
    assert "hid -> unsupported" in str(exc.value)


def test_select_is_idempotent() -> None:
    candidates = _candidates()
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")

    first = selector.select()
    second = selector.select()
    third = selector.select("hid")

    assert first is second is third
    assert candidates[0].creates == 1
    assert candidates[0].probes == 1


def test_explicit_type_only_tries_that_candidate() -> None:
    candidates = _candidates()
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")

    handle = selector.select("u2f")

    assert handle.transport_type == "u2f"
    assert [c.probes for c in candidates] == [0, 0, 0, 1]


def test_explicit_type_failure_is_loud() -> None:
    candidates = _candidates(hid={"fails": True})
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")

    with pytest.raises(TransportTypeUnavailableError) as exc:
        selector.select("hid")

    assert isinstance(exc.value.__cause__, TransportConnectError)
    assert candidates[0].creates == 0
    assert selector.handle is None


def test_explicit_unsupported_and_unknown_types() -> None:
    selector = TransportSelector(SETTINGS, candidates=_candidates(ble={"supported": False}), host_platform="linux")

    with pytest.raises(TransportTypeUnavailableError, match="not supported"):
        selector.select("ble")
    with pytest.raises(TransportTypeUnavailableError, match="Unknown transport type 'nfc'"):
        selector.select("nfc")


def test_close_releases_handle_and_allows_reselect() -> None:
    candidates = _candidates()
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="linux")
    handle = selector.select()

    selector.close()

    assert handle.is_open is False
    assert selector.handle is None
    assert selector.select() is not handle
    assert candidates[0].creates == 2


def test_supported_types() -> None:
    candidates = _candidates(hid={"supported": False})
    selector = TransportSelector(SETTINGS, candidates=candidates, host_platform="darwin")

    assert selector.supported_types() == ["usb", "ble", "u2f"]
