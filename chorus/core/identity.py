from __future__ import annotations

import hashlib
import hmac

from chorus.core.errors import ConfigurationError

MIN_PEPPER_LEN = 32
USER_HASH_PREVIEW_LEN = 12
_DERIVED_PEPPER_LABEL = b"chorus:user-id-pepper"


def derive_pepper(secret: str) -> bytes:
    return hmac.new(secret.encode("ascii"), _DERIVED_PEPPER_LABEL, hashlib.sha256).digest()


class UserIdHasher:
    """Peppered one-way user id hashing, so logs never carry raw identifiers."""

    def __init__(self, pepper: bytes) -> None:
        if len(pepper) < MIN_PEPPER_LEN:
            raise ConfigurationError(
                f"user id pepper must be at least {MIN_PEPPER_LEN} characters long for adequate security"
            )
        self._pepper = pepper

    @classmethod
    def from_config(cls, pepper: str, secret: str) -> "UserIdHasher":
        if pepper:
            return cls(pepper.encode("utf-8"))
        return cls(derive_pepper(secret))

    def hash(self, user_id: str) -> str:
        return hmac.new(self._pepper, user_id.encode("utf-8"), hashlib.sha256).hexdigest()

    def preview(self, user_id: str) -> str:
        return self.hash(user_id)[:USER_HASH_PREVIEW_LEN]

    def verify(self, user_id: str, digest: str) -> bool:
        if len(digest) != 64:
            return False
        return hmac.compare_digest(self.hash(user_id).encode("ascii"), digest.lower().encode("utf-8"))


__all__ = [
    "MIN_PEPPER_LEN",
    "derive_pepper",
    "UserIdHasher",
]
