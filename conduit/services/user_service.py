"""
User service — registration, login and account updates.

Uniqueness of email and username is checked against a scan of every stored
identity before insert, so that all violations can be reported together.
The database unique constraints remain the final guard against concurrent
registrations; the router translates those integrity errors.
"""
import logging

from conduit.errors import ValidationError
from conduit.models import User
from conduit.schemas import UserLogin, UserRegister, UserUpdate
from conduit.services.credentials import CredentialStore
from conduit.services.identity import Authenticated
from conduit.services.tokens import TokenService
from conduit.store import Store
from conduit.validation import chain, validate_email, validate_password, validate_username

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User, token: str) -> dict:
    return {
        "email": user.email,
        "token": token,
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
    }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class UserService:
    def __init__(self, store: Store, credentials: CredentialStore, tokens: TokenService) -> None:
        self.store = store
        self.credentials = credentials
        self.tokens = tokens

    async def register(self, data: UserRegister) -> dict:
        """
        Create a user after validating all three fields at once.

        Raises ``ValidationError`` listing every offending field.
        """
        emails, usernames = await self.store.users.identities()
        chain([
            validate_username(data.username, usernames),
            validate_email(data.email, emails),
            validate_password(data.password),
        ]).raise_for_errors()

        user = await self.store.users.add(
            User(
                email=data.email,
                username=data.username,
                password_hash=self.credentials.hash(data.password),
                bio="",
                image=None,
            )
        )
        logger.info("Registered user id=%s username=%r", user.id, user.username)
        return _user_to_dict(user, self.tokens.issue(user.id))

    async def login(self, data: UserLogin) -> dict:
        user = await self.store.users.by_email(data.email)
        if user is None:
            raise ValidationError.single("email", "email not registered")
        if not self.credentials.verify(user.password_hash, data.password):
            logger.info("Failed login for user id=%s", user.id)
            raise ValidationError.single("password", "incorrect password")
        return _user_to_dict(user, self.tokens.issue(user.id))

    def current(self, identity: Authenticated) -> dict:
        return _user_to_dict(identity.user, identity.token)

    async def update(self, identity: Authenticated, data: UserUpdate) -> dict:
        """
        Apply the supplied fields to the caller's account.

        Empty email, username or password values count as "not supplied".
        Only supplied identity fields are validated, against the identities
        of every *other* user.  A fresh token is returned.
        """
        user = identity.user
        changes = data.model_dump(exclude_unset=True)
        emails, usernames = await self.store.users.identities()

        results = []
        if changes.get("password"):
            results.append(validate_password(changes["password"]))
        if changes.get("email"):
            results.append(validate_email(changes["email"], [e for e in emails if e != user.email]))
        if changes.get("username"):
            results.append(
                validate_username(changes["username"], [u for u in usernames if u != user.username])
            )
        chain(results).raise_for_errors()

        if changes.get("email"):
            user.email = changes["email"]
        if changes.get("username"):
            user.username = changes["username"]
        if changes.get("password"):
            user.password_hash = self.credentials.hash(changes["password"])
        if changes.get("bio") is not None:
            user.bio = changes["bio"]
        if "image" in changes:
            user.image = changes["image"]

        await self.store.users.save(user)
        logger.info("Updated user id=%s fields=%s", user.id, sorted(changes))
        return _user_to_dict(user, self.tokens.issue(user.id))
