"""
Profile service — public profiles and the follow graph.

``following`` is always relative to the viewer: it is true only when the
viewer has a follow edge to the profile's user, and false for anonymous
viewers.  Follow and unfollow are idempotent; each inserts or deletes a
single ``follows`` row, so concurrent edits of one user's edge set never
overwrite each other.
"""
import logging

from conduit.errors import Forbidden, NotFound, ValidationError
from conduit.models import User
from conduit.store import Store

logger = logging.getLogger(__name__)


def profile_to_dict(user: User, following: bool = False) -> dict:
    return {
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "following": following,
    }


class ProfileService:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def _target(self, username: str) -> User:
        target = await self.store.users.by_username(username)
        if target is None:
            raise NotFound.single("username", "username not found")
        return target

    async def _reload_viewer(self, viewer: User) -> User:
        current = await self.store.users.by_username(viewer.username)
        if current is None:
            raise Forbidden.single("username", "forbidden")
        return current

    async def get_profile(self, viewer_username: str | None, target_username: str) -> dict:
        """
        Return *target_username*'s profile as seen by *viewer_username*.

        An anonymous viewer (``None``) always sees ``following=False``.  A
        viewer name that no longer resolves is treated as not found.
        """
        target = await self._target(target_username)
        if viewer_username is None:
            return profile_to_dict(target, following=False)

        viewer = await self.store.users.by_username(viewer_username)
        if viewer is None:
            raise NotFound.single("username", "username not found")
        following = await self.store.follows.contains(viewer.id, target.id)
        return profile_to_dict(target, following=following)

    async def follow(self, viewer: User, target_username: str) -> dict:
        target = await self._target(target_username)
        current = await self._reload_viewer(viewer)
        if current.id == target.id:
            raise ValidationError.single("username", "cannot follow yourself")

        if await self.store.follows.add(current.id, target.id):
            logger.info("User id=%s followed id=%s", current.id, target.id)
        return profile_to_dict(target, following=True)

    async def unfollow(self, viewer: User, target_username: str) -> dict:
        target = await self._target(target_username)
        current = await self._reload_viewer(viewer)

        if await self.store.follows.remove(current.id, target.id):
            logger.info("User id=%s unfollowed id=%s", current.id, target.id)
        return profile_to_dict(target, following=False)
