import hashlib
import hmac
from abc import ABC, abstractmethod


class Credential(ABC):
    """Strategy interface."""
    @abstractmethod
    def matches(self, secret: str) -> bool:
        pass

    @property
    @abstractmethod
    def digest(self) -> str:
        pass


class PasswordCredential(Credential):
    """One-way SHA-256 digest of a secret. The secret itself is never kept."""

    def __init__(self, digest: str):
        self._digest = digest

    @classmethod
    def from_secret(cls, secret: str) -> "PasswordCredential":
        return cls(hash_secret(secret))

    @property
    def digest(self) -> str:
        return self._digest

    def matches(self, secret: str) -> bool:
        if not isinstance(secret, str):
            return False
        return hmac.compare_digest(self._digest.encode("utf-8"), hash_secret(secret).encode("utf-8"))


def hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()
