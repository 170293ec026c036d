from fastapi import APIRouter, Depends

from conduit.dependencies import get_profile_service, optional_viewer, require_identity
from conduit.models import User
from conduit.schemas import ProfileEnvelope
from conduit.services.identity import Authenticated
from conduit.services.profile_service import ProfileService

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/{username}", response_model=ProfileEnvelope)
async def get_profile(
    username: str,
    viewer: User | None = Depends(optional_viewer),
    profiles: ProfileService = Depends(get_profile_service),
):
    viewer_username = viewer.username if viewer else None
    return {"profile": await profiles.get_profile(viewer_username, username)}


@router.post("/{username}/follow", response_model=ProfileEnvelope)
async def follow(
    username: str,
    identity: Authenticated = Depends(require_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    return {"profile": await profiles.follow(identity.user, username)}


@router.delete("/{username}/follow", response_model=ProfileEnvelope)
async def unfollow(
    username: str,
    identity: Authenticated = Depends(require_identity),
    profiles: ProfileService = Depends(get_profile_service),
):
    return {"profile": await profiles.unfollow(identity.user, username)}
