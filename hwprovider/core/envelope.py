"""Signable envelopes: the contracts the signing flows rely on, plus reference types.

The signing flows only use the ``version``/``options`` fields,
``serialize_for_signing()`` and ``apply_signature()``. Any object model
exposing them can be signed; ``Transaction`` and ``Message`` are the ones the
CLI reads and writes.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any, Protocol

SIGNER = "ledger"


class SignableTransaction(Protocol):
    version: int
    options: int

    def serialize_for_signing(self) -> bytes:
        """Return the exact bytes the device signs over."""

    def apply_signature(self, signature: bytes) -> None:
        """Attach a raw signature."""


class SignableMessage(Protocol):
    def serialize_for_signing(self) -> bytes:
        """Return the exact bytes the device signs over."""

    def apply_signature(self, signature: bytes) -> None:
        """Attach a raw signature."""


@dataclass
class Transaction:
    sender: str
    receiver: str
    gas_limit: int
    chain_id: str
    nonce: int = 0
    value: int = 0
    gas_price: int = 1_000_000_000
    data: bytes = b""
    version: int = 1
    options: int = 0
    guardian: str = ""
    signature: bytes = b""

    def serialize_for_signing(self) -> bytes:
        # Field order is part of the signed payload.
        plain: dict[str, Any] = {
            "nonce": self.nonce,
            "value": str(self.value),
            "receiver": self.receiver,
            "sender": self.sender,
            "gasPrice": self.gas_price,
            "gasLimit": self.gas_limit,
        }
        if self.data:
            plain["data"] = base64.b64encode(self.data).decode("ascii")
        plain["chainID"] = self.chain_id
        plain["version"] = self.version
        if self.options:
            plain["options"] = self.options
        if self.guardian:
            plain["guardian"] = self.guardian
        return json.dumps(plain, separators=(",", ":")).encode("utf-8")

    def apply_signature(self, signature: bytes) -> None:
        self.signature = bytes(signature)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nonce": self.nonce,
            "value": str(self.value),
            "receiver": self.receiver,
            "sender": self.sender,
            "gasPrice": self.gas_price,
            "gasLimit": self.gas_limit,
            "data": base64.b64encode(self.data).decode("ascii"),
            "chainID": self.chain_id,
            "version": self.version,
            "options": self.options,
            "guardian": self.guardian,
            "signature": self.signature.hex(),
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> Transaction:
        return cls(
            sender=doc["sender"],
            receiver=doc["receiver"],
            gas_limit=int(doc["gasLimit"]),
            chain_id=str(doc["chainID"]),
            nonce=int(doc.get("nonce", 0)),
            value=int(doc.get("value", 0)),
            gas_price=int(doc.get("gasPrice", 1_000_000_000)),
            data=base64.b64decode(doc.get("data", ""), validate=True),
            version=int(doc.get("version", 1)),
            options=int(doc.get("options", 0)),
            guardian=doc.get("guardian", ""),
            signature=bytes.fromhex(doc.get("signature", "")),
        )


@dataclass
class Message:
    data: bytes
    address: str | None = None
    version: int = 1
    signer: str = SIGNER
    signature: bytes = b""

    def serialize_for_signing(self) -> bytes:
        # The device adds the signed-message prefix and hashes on its side.
        return bytes(self.data)

    def apply_signature(self, signature: bytes) -> None:
        self.signature = bytes(signature)
