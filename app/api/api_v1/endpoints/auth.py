from typing import Any
from fastapi import APIRouter, Depends, status
from app.api.deps import get_account_service
from app.core.auth import get_current_user
from app.schemas.auth import LoginRequest, Token
from app.schemas.user import CurrentUser, User, UserCreate
from app.services.accounts import AccountService

router = APIRouter()

@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(
    *,
    user_in: UserCreate,
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Register a new commercial or technician account.

    The account starts as pending and cannot log in until an admin approves it.
    """
    return await accounts.register(user_in)

@router.post("/login", response_model=Token)
async def login(
    *,
    credentials: LoginRequest,
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Exchange email and password for a bearer token valid 7 days.
    """
    return await accounts.login(credentials.email, credentials.password)

@router.get("/me", response_model=User)
async def read_user_me(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
) -> Any:
    """
    Get current user.
    """
    return await accounts.get_profile(current_user)
