"""Origin signature verification."""
from typing import Protocol


class SignatureVerifier(Protocol):
    """Decides whether a dispatch really comes from the claimed address."""

    async def verify(self, address: str, signature: str) -> bool:
        ...


class AcceptAllVerifier:
    """Verifier that trusts every signature.

    No signature scheme has been defined for origins yet.
    """

    async def verify(self, address: str, signature: str) -> bool:
        return True
