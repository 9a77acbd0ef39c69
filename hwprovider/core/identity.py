"""Address ownership proofs over opaque auth tokens."""

from __future__ import annotations

from hwprovider.core.device import DeviceApp
from hwprovider.core.model import IdentityProof


class IdentityProofSigner:
    def __init__(self, app: DeviceApp) -> None:
        self.app = app

    def prove_identity(self, token: bytes, address_index: int) -> IdentityProof:
        # Token signing is not version-gated, so no capability query here.
        result = self.app.get_address_and_sign_auth_token(0, address_index, bytes(token))
        return IdentityProof(address=result.address, signature=bytes.fromhex(result.signature))
