"""Adapts transactions and messages to the attached firmware and signs them."""

from __future__ import annotations

import copy
import enum
import logging
from typing import TypeVar

from hwprovider.core.capabilities import CapabilityResolver
from hwprovider.core.device import DeviceApp
from hwprovider.core.envelope import SignableMessage, SignableTransaction
from hwprovider.core.errors import UnsupportedGuardianFeatureError
from hwprovider.core.model import CapabilitySet, TransactionPolicy

LOGGER = logging.getLogger(__name__)

TransactionT = TypeVar("TransactionT", bound=SignableTransaction)
MessageT = TypeVar("MessageT", bound=SignableMessage)


class SigningState(enum.Enum):
    IDLE = "idle"
    CLONED = "cloned"
    CAPABILITIES_RESOLVED = "capabilities_resolved"
    VALIDATED = "validated"
    MUTATED = "mutated"
    SERIALIZED = "serialized"
    AWAITING_DEVICE_SIGNATURE = "awaiting_device_signature"
    SIGNATURE_APPLIED = "signature_applied"
    ABORTED = "aborted"


class SigningAdapter:
    """Signs copies of caller envelopes with the options the firmware expects.

    The caller's object is never touched: every field change and the
    signature land on a deep copy, which is what gets returned. Device
    errors propagate as raised and are never retried, since each attempt
    prompts the user on the device.
    """

    def __init__(
        self,
        app: DeviceApp,
        *,
        resolver: CapabilityResolver | None = None,
        policy: TransactionPolicy | None = None,
    ) -> None:
        self.app = app
        self.resolver = resolver or CapabilityResolver()
        self.policy = policy or TransactionPolicy()
        self.state = SigningState.IDLE

    def _advance(self, state: SigningState) -> None:
        LOGGER.debug("Signing state %s -> %s", self.state.value, state.value)
        self.state = state

    def sign_transaction(self, transaction: TransactionT) -> TransactionT:
        self.state = SigningState.IDLE
        transaction = copy.deepcopy(transaction)
        self._advance(SigningState.CLONED)

        capabilities = self.resolver.resolve(self.app)
        self._advance(SigningState.CAPABILITIES_RESOLVED)

        self._validate(transaction, capabilities)
        self._advance(SigningState.VALIDATED)

        self._mutate(transaction, capabilities)
        self._advance(SigningState.MUTATED)

        payload = bytes(transaction.serialize_for_signing())
        self._advance(SigningState.SERIALIZED)

        self._advance(SigningState.AWAITING_DEVICE_SIGNATURE)
        signature = self.app.sign_transaction(payload, capabilities.must_sign_using_hash)

        transaction.apply_signature(bytes.fromhex(signature))
        self._advance(SigningState.SIGNATURE_APPLIED)
        return transaction

    def sign_message(self, message: MessageT) -> MessageT:
        self.state = SigningState.IDLE
        message = copy.deepcopy(message)
        self._advance(SigningState.CLONED)

        payload = bytes(message.serialize_for_signing())
        self._advance(SigningState.SERIALIZED)

        self._advance(SigningState.AWAITING_DEVICE_SIGNATURE)
        signature = self.app.sign_message(payload)

        message.apply_signature(bytes.fromhex(signature))
        self._advance(SigningState.SIGNATURE_APPLIED)
        return message

    def _validate(self, transaction: SignableTransaction, capabilities: CapabilitySet) -> None:
        guarded = transaction.options & self.policy.guarded_option
        if guarded and not capabilities.supports_guardian_option:
            self._advance(SigningState.ABORTED)
            raise UnsupportedGuardianFeatureError(capabilities.reported_version)

    def _mutate(self, transaction: SignableTransaction, capabilities: CapabilitySet) -> None:
        # Both changes come from one capability snapshot and are applied together.
        version = transaction.version
        options = transaction.options
        if capabilities.must_use_versioned_options_field:
            version = self.policy.version_with_options
        if capabilities.must_sign_using_hash:
            options |= self.policy.hash_sign_option

        if version != transaction.version:
            LOGGER.info("Transaction version: %s", version)
        if options != transaction.options:
            LOGGER.info("Transaction options: %s", options)
        transaction.version = version
        transaction.options = options
