from pydantic import BaseModel, Field, field_validator

from conduit.config import settings

# Request bodies are wrapped in a single key ({"user": {...}} etc).  Core
# string fields default to "" so that missing values reach the service
# validators and are reported per field instead of as schema errors.


# --- User ---

class UserRegister(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class RegisterRequest(BaseModel):
    user: UserRegister


class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    user: UserLogin


class UserUpdate(BaseModel):
    email: str | None = None
    username: str | None = None
    password: str | None = None
    bio: str | None = None
    image: str | None = None


class UserUpdateRequest(BaseModel):
    user: UserUpdate


class UserResponse(BaseModel):
    email: str
    token: str
    username: str
    bio: str
    image: str | None = None


class UserEnvelope(BaseModel):
    user: UserResponse


# --- Profile ---

class ProfileResponse(BaseModel):
    username: str
    bio: str
    image: str | None = None
    following: bool = False


class ProfileEnvelope(BaseModel):
    profile: ProfileResponse


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = ""
    description: str = ""
    body: str = ""
    tagList: list[str] = []


class ArticleCreateRequest(BaseModel):
    article: ArticleCreate


class ArticleUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    body: str | None = None


class ArticleUpdateRequest(BaseModel):
    article: ArticleUpdate


class ArticleFilters(BaseModel):
    author: str | None = None
    tag: str | None = None
    favorited: str | None = None
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1)
    offset: int = Field(0, ge=0)

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, value: int) -> int:
        # Oversized pages are served at the maximum instead of rejected.
        return min(value, settings.MAX_PAGE_SIZE)


# --- Comment ---

class CommentCreate(BaseModel):
    body: str = ""


class CommentCreateRequest(BaseModel):
    comment: CommentCreate


# --- Misc ---

class StatusResponse(BaseModel):
    status: str


class TagsResponse(BaseModel):
    tags: list[str]
