"""Authorization decisions as a tagged result.

Login and session issuance live elsewhere; here we only decide whether the
already-authenticated user may call a route.
"""

from dataclasses import dataclass

from fastapi import Depends
from fastapi.responses import JSONResponse

from job_ingest.models import User

from .dependencies import get_current_user


@dataclass(frozen=True)
class Authorized:
    user: User


@dataclass(frozen=True)
class Denied:
    status_code: int
    reason: str

    def to_response(self) -> JSONResponse:
        return JSONResponse({"error": self.reason}, status_code=self.status_code)


AuthResult = Authorized | Denied


def authorize(user: User | None, roles: tuple[str, ...] = ()) -> AuthResult:
    if user is None:
        return Denied(401, "Unauthorized")
    if roles and user.role not in roles:
        return Denied(403, "Forbidden")
    return Authorized(user)


def require_admin(user: User | None = Depends(get_current_user)) -> AuthResult:
    return authorize(user, ("admin",))
