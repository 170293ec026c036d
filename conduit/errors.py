"""
Typed service errors.

Every error carries a ``{field: [messages]}`` mapping and the HTTP status
it maps to.  Services raise these; ``conduit.main`` installs one exception
handler that renders them as ``{"errors": {...}}``.
"""


class ConduitError(Exception):
    status_code: int = 422

    def __init__(self, errors: dict[str, list[str]], status_code: int | None = None) -> None:
        super().__init__(errors)
        self.errors = errors
        if status_code is not None:
            self.status_code = status_code

    @classmethod
    def single(cls, field: str, message: str) -> "ConduitError":
        return cls({field: [message]})

    def to_dict(self) -> dict:
        return {"errors": self.errors}


class ValidationError(ConduitError):
    status_code = 422


class NotFound(ConduitError):
    status_code = 422


class AuthError(ConduitError):
    """Identity could not be established (401 or 422 depending on the cause)."""

    status_code = 401


class Forbidden(ConduitError):
    status_code = 403
