from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError

from conduit.dependencies import get_user_service, require_identity
from conduit.errors import ValidationError
from conduit.schemas import LoginRequest, RegisterRequest, UserEnvelope, UserUpdateRequest
from conduit.services.identity import Authenticated
from conduit.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["users"])


def _duplicate() -> ValidationError:
    return ValidationError({"user": ["username or email already taken"]})


@router.post("/users", response_model=UserEnvelope)
async def register(data: RegisterRequest, users: UserService = Depends(get_user_service)):
    try:
        return {"user": await users.register(data.user)}
    except IntegrityError:
        # Lost a race with a concurrent registration of the same identity.
        raise _duplicate()


@router.post("/users/login", response_model=UserEnvelope)
async def login(data: LoginRequest, users: UserService = Depends(get_user_service)):
    return {"user": await users.login(data.user)}


@router.get("/user", response_model=UserEnvelope)
async def current_user(
    identity: Authenticated = Depends(require_identity),
    users: UserService = Depends(get_user_service),
):
    return {"user": users.current(identity)}


@router.put("/user", response_model=UserEnvelope)
async def update_user(
    data: UserUpdateRequest,
    identity: Authenticated = Depends(require_identity),
    users: UserService = Depends(get_user_service),
):
    try:
        return {"user": await users.update(identity, data.user)}
    except IntegrityError:
        raise _duplicate()
