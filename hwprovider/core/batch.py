"""Sequential batch signing."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

from hwprovider.core.envelope import SignableTransaction
from hwprovider.core.errors import BatchSigningError
from hwprovider.core.signing import SigningAdapter

LOGGER = logging.getLogger(__name__)

TransactionT = TypeVar("TransactionT", bound=SignableTransaction)


class BatchSigner:
    def __init__(self, adapter: SigningAdapter) -> None:
        self.adapter = adapter

    def sign_all(self, transactions: Sequence[TransactionT]) -> list[TransactionT]:
        """Sign each transaction in order, one device prompt at a time.

        Stops at the first failure and raises ``BatchSigningError`` with the
        copies signed so far; the original error is its ``__cause__``.
        """
        signed: list[TransactionT] = []
        for index, transaction in enumerate(transactions):
            try:
                signed.append(self.adapter.sign_transaction(transaction))
            except Exception as exc:
                LOGGER.warning("Batch signing stopped at item %d of %d: %s", index, len(transactions), exc)
                raise BatchSigningError(index, signed) from exc
        return signed
