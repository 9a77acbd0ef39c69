from __future__ import annotations

import pytest

from hwprovider.core.envelope import Message, Transaction
from hwprovider.core.errors import DeviceStatusError, UnsupportedGuardianFeatureError
from hwprovider.core.signing import SigningAdapter, SigningState

ALICE = "erd1qyu5wthldzr8wx5c9ucg8kjagg0jfs53s8nr3zpz3hypefsdd8ssycr6th"
BOB = "erd1spyavw0956vq68xj8y4tenjpq2wd5a9p2c6j8gsz7ztyrnpxrruqzu66jx"


def _transaction(version: int = 1, options: int = 0, nonce: int = 0) -> Transaction:
    return Transaction(
        sender=ALICE,
        receiver=BOB,
        gas_limit=123456,
        chain_id="D",
        nonce=nonce,
        version=version,
        options=options,
    )


@pytest.mark.parametrize(
    ("device_version", "version", "options", "expected_version", "expected_options"),
    [
        ("1.0.10", 1, 0, 1, 0),
        ("1.0.11", 1, 0, 2, 0b0001),
        ("1.0.11", 2, 1, 2, 0b0001),
        ("1.0.22", 2, 0b1110, 2, 0b1111),
    ],
)
def test_sign_transaction(
    device_app,
    device_version: str,
    version: int,
    options: int,
    expected_version: int,
    expected_options: int,
) -> None:
    device_app.version = device_version
    device_app.transaction_signatures = ["abba"]
    original = _transaction(version, options)

    signed = SigningAdapter(device_app).sign_transaction(original)

    assert signed.signature == bytes.fromhex("abba")
    assert signed.version == expected_version
    assert signed.options == expected_options
    assert signed is not original
    assert (original.version, original.options, original.signature) == (version, options, b"")


def test_below_hash_threshold_signs_raw_payload(device_app) -> None:
    device_app.version = "1.0.10"
    device_app.transaction_signatures = ["abba"]
    original = _transaction()

    SigningAdapter(device_app).sign_transaction(original)

    _, payload, using_hash = device_app.calls[-1]
    assert using_hash is False
    assert payload == original.serialize_for_signing()


def test_hash_signing_payload_carries_mutated_fields(device_app) -> None:
    device_app.version = "1.0.11"
    device_app.transaction_signatures = ["abba"]

    signed = SigningAdapter(device_app).sign_transaction(_transaction())

    _, payload, using_hash = device_app.calls[-1]
    assert using_hash is True
    assert payload == signed.serialize_for_signing()
    assert b'"version":2' in payload
    assert b'"options":1' in payload


def test_guarded_transaction_rejected_on_old_firmware(device_app) -> None:
    device_app.version = "1.0.21"
    device_app.transaction_signatures = ["abba"]
    original = _transaction(2, 0b1110)
    adapter = SigningAdapter(device_app)

    with pytest.raises(UnsupportedGuardianFeatureError) as exc:
        adapter.sign_transaction(original)

    assert exc.value.version == "1.0.21"
    assert "1.0.21" in str(exc.value)
    assert adapter.state is SigningState.ABORTED
    assert "sign_transaction" not in device_app.call_names()
    assert (original.version, original.options) == (2, 0b1110)


def test_state_reaches_signature_applied(device_app) -> None:
    device_app.transaction_signatures = ["abba"]
    adapter = SigningAdapter(device_app)
    assert adapter.state is SigningState.IDLE

    adapter.sign_transaction(_transaction())
    assert adapter.state is SigningState.SIGNATURE_APPLIED


def test_device_errors_propagate_without_retry(device_app) -> None:
    calls = []

    def rejecting(payload: bytes, using_hash: bool) -> str:
        calls.append(payload)
        raise DeviceStatusError(0x6985, "request was rejected on the device")

    device_app.sign_transaction = rejecting
    original = _transaction()

    with pytest.raises(DeviceStatusError) as exc:
        SigningAdapter(device_app).sign_transaction(original)

    assert exc.value.status_word == 0x6985
    assert len(calls) == 1
    assert original.signature == b""
    assert original.options == 0


def test_sign_message_keeps_original_untouched(device_app) -> None:
    device_app.message_signature = "abba"
    original = Message(data=b"Hello World", address=ALICE, version=42)

    signed = SigningAdapter(device_app).sign_message(original)

    assert signed.address == ALICE
    assert signed.version == 42
    assert signed.signature == bytes.fromhex("abba")
    assert original.signature == b""
    assert signed.serialize_for_signing() == original.serialize_for_signing()
    assert device_app.calls[-1] == ("sign_message", b"Hello World")
    assert "get_app_configuration" not in device_app.call_names()
