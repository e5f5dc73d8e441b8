from typing import List, Any
from fastapi import APIRouter, Depends, Path
from app.api.deps import get_account_service
from app.core.auth import get_current_user
from app.schemas.user import CurrentUser, User, UserRoleUpdate, UserStats, UserStatusUpdate
from app.services.accounts import AccountService

router = APIRouter()

@router.get("/users", response_model=List[User])
async def read_users(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Retrieve all users, newest first.
    """
    return await accounts.list_users(current_user)

@router.get("/users/pending", response_model=List[User])
async def read_pending_users(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Retrieve accounts awaiting approval.
    """
    return await accounts.list_pending_users(current_user)

@router.patch("/users/{user_id}/status", response_model=User)
async def update_user_status(
    *,
    user_id: str = Path(..., description="The ID of the user to approve or reject"),
    status_in: UserStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Approve (``active``) or reject (``rejected``) an account.
    """
    return await accounts.set_status(current_user, user_id, status_in.status)

@router.patch("/users/{user_id}/role", response_model=User)
async def update_user_role(
    *,
    user_id: str = Path(..., description="The ID of the user"),
    role_in: UserRoleUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Switch a user between commercial and technician.

    Administrator accounts cannot be modified.
    """
    return await accounts.set_role(current_user, user_id, role_in.role)

@router.get("/stats", response_model=UserStats)
async def read_stats(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Count users by approval status and by role.
    """
    return await accounts.stats(current_user)
