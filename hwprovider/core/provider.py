"""Provider facade used by the CLI and by applications embedding hwprovider."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import TypeVar

from hwprovider.apps.ledger import LedgerApp
from hwprovider.core.batch import BatchSigner
from hwprovider.core.capabilities import CapabilityResolver
from hwprovider.core.device import DeviceApp
from hwprovider.core.envelope import SignableMessage, SignableTransaction
from hwprovider.core.errors import HWProviderError, NotInitializedError
from hwprovider.core.identity import IdentityProofSigner
from hwprovider.core.model import AppConfiguration, CapabilitySet, DeviceProfile, IdentityProof
from hwprovider.core.profile_loader import load_profiles, pick_profile
from hwprovider.core.selector import TransportSelector
from hwprovider.core.signing import SigningAdapter
from hwprovider.transports.base import Transport

LOGGER = logging.getLogger(__name__)

ACCOUNT = 0

TransactionT = TypeVar("TransactionT", bound=SignableTransaction)
MessageT = TypeVar("MessageT", bound=SignableMessage)


class HWProvider:
    """Owns one transport and one device handle for its initialized lifetime.

    Every device operation runs under a single lock, so at most one command
    sequence is in flight against the device at a time.
    """

    def __init__(
        self,
        *,
        app: DeviceApp | None = None,
        profile: DeviceProfile | None = None,
        selector: TransportSelector | None = None,
        app_factory: Callable[[Transport], DeviceApp] = LedgerApp,
    ) -> None:
        self.load_warnings: tuple[str, ...] = ()
        if profile is None:
            loaded = load_profiles()
            profile = pick_profile(loaded)
            self.load_warnings = loaded.warnings
        self.profile = profile
        self.selector = selector or TransportSelector(self.profile.transport)
        self.resolver = CapabilityResolver(self.profile.capabilities)
        self._app_factory = app_factory
        self._app = app
        self._address_index = 0
        self._lock = threading.Lock()

    @property
    def address_index(self) -> int:
        return self._address_index

    @property
    def app(self) -> DeviceApp | None:
        return self._app

    def connect(self, transport_type: str | None = None) -> DeviceApp:
        with self._lock:
            if self._app is None:
                transport = self.selector.select(transport_type)
                self._app = self._app_factory(transport)
            return self._app

    def init(self, transport_type: str | None = None) -> bool:
        """Select a transport and bind the device app; True when ready."""
        if self.is_initialized():
            return True
        try:
            self.connect(transport_type)
        except HWProviderError as exc:
            LOGGER.error("Provider initialization error: %s", exc)
            return False
        return True

    def close(self) -> None:
        with self._lock:
            self._app = None
            self.selector.close()

    def is_initialized(self) -> bool:
        return self._app is not None

    def is_connected(self) -> bool:
        if not self.is_initialized():
            return False
        handle = self.selector.handle
        is_open = getattr(handle, "is_open", None)
        if is_open is None:
            # Injected apps and transports without a liveness flag.
            return True
        return bool(is_open)

    def _require_app(self) -> DeviceApp:
        if self._app is None:
            raise NotInitializedError()
        return self._app

    def _adapter(self, app: DeviceApp) -> SigningAdapter:
        return SigningAdapter(app, resolver=self.resolver, policy=self.profile.transaction)

    def _set_address_index(self, app: DeviceApp, address_index: int) -> None:
        if address_index < 0:
            raise ValueError(f"Address index must be non-negative, got {address_index}")
        app.set_address(ACCOUNT, address_index)
        self._address_index = address_index

    def login(self, address_index: int = 0) -> str:
        """Select ``address_index`` on the device and return its address, shown on screen."""
        with self._lock:
            app = self._require_app()
            self._set_address_index(app, address_index)
            return app.get_address(ACCOUNT, address_index, True).address

    def logout(self) -> bool:
        with self._lock:
            self._require_app()
        return True

    def set_address_index(self, address_index: int) -> None:
        with self._lock:
            app = self._require_app()
            self._set_address_index(app, address_index)

    def get_accounts(self, page: int = 0, page_size: int = 10) -> list[str]:
        if page < 0 or page_size < 1:
            raise ValueError(f"Invalid accounts page {page} of size {page_size}")
        start = page * page_size
        with self._lock:
            app = self._require_app()
            return [app.get_address(ACCOUNT, index).address for index in range(start, start + page_size)]

    def get_address(self) -> str:
        with self._lock:
            app = self._require_app()
            return app.get_address(ACCOUNT, self._address_index).address

    def get_app_configuration(self) -> AppConfiguration:
        with self._lock:
            app = self._require_app()
            return app.get_app_configuration()

    def get_capabilities(self) -> CapabilitySet:
        with self._lock:
            app = self._require_app()
            return self.resolver.resolve(app)

    def sign_transaction(self, transaction: TransactionT) -> TransactionT:
        with self._lock:
            app = self._require_app()
            return self._adapter(app).sign_transaction(transaction)

    def sign_transactions(self, transactions: Sequence[TransactionT]) -> list[TransactionT]:
        with self._lock:
            app = self._require_app()
            return BatchSigner(self._adapter(app)).sign_all(transactions)

    def sign_message(self, message: MessageT) -> MessageT:
        with self._lock:
            app = self._require_app()
            return self._adapter(app).sign_message(message)

    def token_login(self, token: bytes, address_index: int | None = None) -> IdentityProof:
        """Prove ownership of an address by signing ``token`` with it."""
        with self._lock:
            app = self._require_app()
            index = self._address_index if address_index is None else address_index
            self._set_address_index(app, index)
            return IdentityProofSigner(app).prove_identity(token, index)
