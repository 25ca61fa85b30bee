from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hostelcare.access import authorize
from hostelcare.core.config import Settings, get_settings
from hostelcare.errors import UnauthorizedError
from hostelcare.users.models import Role, User
from hostelcare.users.service import UserDirectory

bearer_scheme = HTTPBearer(auto_error=False)


async def get_user_directory(request: Request) -> UserDirectory:
    directory = getattr(request.app.state, "user_directory", None)
    if directory is None:
        raise HTTPException(status_code=503, detail="User directory is not configured")
    return directory


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> User | None:
    """Resolve the bearer token to an account, or ``None`` when no token was sent.

    Credential issuance belongs to the identity provider; this only looks the
    opaque token up.
    """

    if credentials is None:
        return None
    user = await directory.resolve_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user(user: Annotated[User | None, Depends(get_optional_user)]) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def role_required(*roles: Role) -> Callable[[User], Awaitable[User]]:
    """Dependency factory ensuring the current user holds one of ``roles``."""

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        try:
            return authorize(user, roles)
        except UnauthorizedError as exc:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions") from exc

    return dependency


async def get_ticket_author(
    request: Request,
    user: Annotated[User | None, Depends(get_optional_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """The signed-in user, or the system account for anonymous submissions."""

    if user is not None:
        return user
    system_user = getattr(request.app.state, "system_user", None)
    if not settings.allow_anonymous_tickets or system_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return system_user


require_admin = role_required(Role.ADMIN)
require_staff = role_required(Role.ADMIN, Role.WARDEN)

CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
StaffUser = Annotated[User, Depends(require_staff)]
TicketAuthor = Annotated[User, Depends(get_ticket_author)]
