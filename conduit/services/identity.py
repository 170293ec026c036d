"""
Identity resolution — ``Authorization`` header to user record.

``IdentityResolver.resolve`` never raises for an authentication failure.
It returns exactly one of four states:

``Authenticated``
    header present, token valid, user still stored.
``MissingToken``
    no header.  Endpoints with optional auth treat this as an anonymous
    viewer; endpoints that require auth reject with 401.
``UnknownUser``
    the token decodes but no user has that id (422).
``InvalidToken``
    the token is absent from the header or fails verification (422).

The user is re-read from the store on every call; nothing is cached.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from conduit.errors import AuthError
from conduit.models import User
from conduit.services.tokens import MalformedToken, TokenService
from conduit.store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authenticated:
    user: User
    token: str


@dataclass(frozen=True)
class MissingToken:
    def error(self) -> AuthError:
        return AuthError({"token": ["No token informed"]}, status_code=401)


@dataclass(frozen=True)
class UnknownUser:
    def error(self) -> AuthError:
        return AuthError({"token": ["Could not find user"]}, status_code=422)


@dataclass(frozen=True)
class InvalidToken:
    def error(self) -> AuthError:
        return AuthError({"token": ["Error validating user"]}, status_code=422)


ResolvedIdentity = Union[Authenticated, MissingToken, UnknownUser, InvalidToken]


def extract_token(header: str) -> str | None:
    """Return the second space-delimited part of *header*; the scheme is ignored."""
    parts = header.split(" ")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


class IdentityResolver:
    def __init__(self, store: Store, tokens: TokenService) -> None:
        self.store = store
        self.tokens = tokens

    async def resolve(self, authorization: str | None) -> ResolvedIdentity:
        if not authorization:
            return MissingToken()

        token = extract_token(authorization)
        if token is None:
            return InvalidToken()

        try:
            user_id = self.tokens.decode(token)
        except MalformedToken as exc:
            logger.debug("Rejected bearer token: %s", exc)
            return InvalidToken()

        user = await self.store.users.get(user_id)
        if user is None:
            logger.debug("Token refers to missing user id=%s", user_id)
            return UnknownUser()
        return Authenticated(user=user, token=token)
