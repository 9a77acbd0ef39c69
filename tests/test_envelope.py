from __future__ import annotations

import json

import pytest

from hwprovider.core.envelope import Message, Transaction


def test_transaction_signing_payload_field_order() -> None:
    tx = Transaction(sender="erd1alice", receiver="erd1bob", gas_limit=50_000, chain_id="D", nonce=7, value=10**18)

    payload = tx.serialize_for_signing()

    assert payload == (
        b'{"nonce":7,"value":"1000000000000000000","receiver":"erd1bob","sender":"erd1alice",'
        b'"gasPrice":1000000000,"gasLimit":50000,"chainID":"D","version":1}'
    )


def test_transaction_payload_includes_optional_fields() -> None:
    tx = Transaction(
        sender="erd1alice",
        receiver="erd1bob",
        gas_limit=50_000,
        chain_id="D",
        data=b"hello",
        version=2,
        options=0b0011,
        guardian="erd1guardian",
    )

    plain = json.loads(tx.serialize_for_signing())

    assert plain["data"] == "aGVsbG8="
    assert plain["options"] == 3
    assert plain["guardian"] == "erd1guardian"
    assert list(plain)[-3:] == ["version", "options", "guardian"]


def test_transaction_dict_conversion() -> None:
    tx = Transaction.from_dict(
        {"sender": "erd1alice", "receiver": "erd1bob", "gasLimit": "70000", "chainID": "T", "value": "5", "data": "aGk="}
    )
    tx.apply_signature(bytes.fromhex("abba"))

    doc = tx.to_dict()

    assert doc["gasLimit"] == 70000
    assert doc["value"] == "5"
    assert tx.data == b"hi"
    assert doc["data"] == "aGk="
    assert doc["signature"] == "abba"
    assert Transaction.from_dict(doc) == tx


def test_message_payload_is_raw_data() -> None:
    message = Message(data=b"Hello World")
    assert message.serialize_for_signing() == b"Hello World"
    assert message.signer == "ledger"


def test_binary_data_survives_dict_round_trip() -> None:
    tx = Transaction(sender="erd1alice", receiver="erd1bob", gas_limit=50_000, chain_id="D", data=b"\xff\x00\x80")

    restored = Transaction.from_dict(json.loads(json.dumps(tx.to_dict())))

    assert restored.data == b"\xff\x00\x80"
    assert restored.serialize_for_signing() == tx.serialize_for_signing()


def test_from_dict_rejects_data_that_is_not_base64() -> None:
    with pytest.raises(ValueError):
        Transaction.from_dict({"sender": "erd1alice", "receiver": "erd1bob", "gasLimit": 1, "chainID": "D", "data": "hi!"})
