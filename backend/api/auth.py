"""
HTTP basic authentication and role checks.

Routers declare the role they need once with ``require_role``; handlers that
need the caller take the same dependency as a parameter (FastAPI caches it
per request, so credentials are checked once).
"""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from api.deps import get_accounts
from domain.models import Role, User
from services.accounts import AccountsService

logger = logging.getLogger(__name__)

security = HTTPBasic()


def get_current_user(
    credentials: HTTPBasicCredentials = Depends(security),
    accounts: AccountsService = Depends(get_accounts),
) -> User:
    user = accounts.authenticate(credentials.username, credentials.password)
    if user is None:
        logger.warning("Failed basic auth for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user


def require_role(role: Role):
    """Build a dependency that admits only users holding `role`."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not user.has_role(role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.value} role required",
            )
        return user

    dependency.__name__ = f"require_{role.value}"
    return dependency


require_owner = require_role(Role.OWNER)
require_admin = require_role(Role.ADMIN)
require_reader = require_role(Role.READER)
