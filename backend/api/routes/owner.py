"""
Owner API routes: libraries and their staff.
"""
from fastapi import APIRouter, Depends

from api.auth import require_owner
from api.deps import get_accounts
from api.schemas import (
    LibraryCreate,
    LibraryResponse,
    UserCreate,
    UserResponse,
    library_to_response,
    user_to_response,
)
from domain.models import User
from services.accounts import AccountsService

router = APIRouter(dependencies=[Depends(require_owner)])


@router.post("/libraries", response_model=LibraryResponse, status_code=201)
def create_library(payload: LibraryCreate, accounts: AccountsService = Depends(get_accounts)):
    """Create a new library."""
    return library_to_response(accounts.create_library(payload.name))


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    payload: UserCreate,
    owner: User = Depends(require_owner),
    accounts: AccountsService = Depends(get_accounts),
):
    """Create a user of any role; defaults to the owner's library."""
    user = accounts.create_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        library_id=payload.library_id or owner.library_id,
        contact_number=payload.contact_number,
    )
    return user_to_response(user)
