"""
Bearer token issue/verification.

Tokens are HS256 JWTs whose only identity claim is the user id.  They are
deliberately long-lived (``TOKEN_TTL_DAYS``, ten years by default): the
application has no refresh flow and treats a token as a standing credential.
"""
from datetime import datetime, timedelta, timezone

import jwt

from conduit.config import settings


class MalformedToken(Exception):
    """The token could not be parsed, failed verification, or lacks an id."""


class TokenService:
    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        self.secret = secret or settings.SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.ttl = ttl if ttl is not None else timedelta(days=settings.TOKEN_TTL_DAYS)

    def issue(self, user_id: int) -> str:
        claims = {"id": user_id, "exp": datetime.now(timezone.utc) + self.ttl}
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> int:
        """Return the user id embedded in *token* or raise ``MalformedToken``."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.InvalidTokenError as exc:
            raise MalformedToken(str(exc)) from exc
        user_id = claims.get("id")
        # bool is an int subclass; reject it explicitly.
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise MalformedToken("token carries no user id")
        return user_id
