"""Password hashing and verification (bcrypt)."""
import bcrypt

from conduit.config import settings

# bcrypt only looks at the first 72 bytes of a password; newer releases
# refuse longer input instead of truncating it silently.
_BCRYPT_MAX_BYTES = 72


class CredentialStore:
    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds or settings.BCRYPT_ROUNDS

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify(self, password_hash: str, password: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
