from typing import List, Optional, Sequence, Tuple
import logging

from app.core.config import Settings, settings as default_settings
from app.core.errors import (
    AccountRejectedError, AuthenticationError, DuplicateEmailError,
    InvalidCredentialsError, NotFoundError, PendingApprovalError, ValidationError
)
from app.core.security import create_access_token, get_password_hash, verify_password
from app.schemas.auth import Token
from app.schemas.user import (
    CurrentUser, User, UserCreate, UserInDB, UserRole, UserStats, UserStatus
)
from app.services.policy import Action, Resource, Target, authorize
from app.store.base import Store

logger = logging.getLogger(__name__)

# (email, password, name, role) of the accounts created by SEED_DEMO_ACCOUNTS
DEMO_ACCOUNTS: Sequence[Tuple[str, str, str, UserRole]] = (
    ("admin@sav.com", "admin123", "Administrator", UserRole.admin),
    ("commercial@demo.com", "demo123", "Demo Commercial", UserRole.commercial),
    ("technicien@demo.com", "demo123", "Demo Technician", UserRole.technician),
)


def _public(user: UserInDB) -> User:
    return User.model_validate(user.model_dump(exclude={"password_hash"}))


class AccountService:
    """Registration, login and the admin approval workflow."""

    def __init__(self, store: Store, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or default_settings

    async def register(self, user_in: UserCreate) -> User:
        """
        Create a pending account. Never auto-activates.
        """
        min_length = self.settings.PASSWORD_MIN_LENGTH
        if len(user_in.password) < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters", field="password")

        email = user_in.email.strip().lower()
        if await self.store.get_user_by_email(email):
            logger.warning(f"Registration refused, email already used: {email}")
            raise DuplicateEmailError()

        user = await self.store.create_user({
            "email": email,
            "password_hash": get_password_hash(user_in.password),
            "name": user_in.name,
            "role": user_in.role.value,
            "status": UserStatus.pending.value,
        })
        logger.info(f"User registered and awaiting approval: {user.id} ({user.role.value})")
        return _public(user)

    async def login(self, email: str, password: str) -> Token:
        user = await self.store.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email.strip().lower()}")
            raise InvalidCredentialsError()

        if user.status == UserStatus.pending:
            raise PendingApprovalError()
        if user.status == UserStatus.rejected:
            raise AccountRejectedError()

        token = create_access_token(
            user.id,
            claims={
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "role": user.role.value,
            },
            settings=self.settings,
        )
        logger.info(f"User logged in: {user.id}")
        return Token(token=token, user=_public(user))

    async def resolve_caller(self, payload: dict) -> CurrentUser:
        """
        Turn a decoded token into the caller identity.

        The role is read back from the store so that an admin's role or
        status change takes effect on tokens already issued.
        """
        user = await self.store.get_user(str(payload["sub"]))
        if user is None:
            raise AuthenticationError("User no longer exists")
        if user.status != UserStatus.active:
            raise AuthenticationError("User not active")
        return CurrentUser(id=user.id, email=user.email, name=user.name, role=user.role)

    async def get_profile(self, caller: CurrentUser) -> User:
        user = await self.store.get_user(caller.id)
        if user is None:
            raise NotFoundError("User not found")
        return _public(user)

    async def list_users(self, caller: CurrentUser, status: Optional[UserStatus] = None) -> List[User]:
        authorize(caller, Resource.user, Action.list)
        users = await self.store.list_users(status=status.value if status else None)
        return [_public(u) for u in users]

    async def list_pending_users(self, caller: CurrentUser) -> List[User]:
        return await self.list_users(caller, status=UserStatus.pending)

    async def set_status(self, caller: CurrentUser, user_id: str, status: UserStatus) -> User:
        """
        Approve or reject an account. Re-applying the current status is a no-op.
        """
        target = await self._get_target(caller, user_id)
        authorize(caller, Resource.user, Action.set_status, Target.of_user(target))
        if target.status == status:
            return _public(target)

        updated = await self.store.update_user(user_id, {"status": status.value})
        if updated is None:
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} status set to {status.value} by admin {caller.id}")
        return _public(updated)

    async def set_role(self, caller: CurrentUser, user_id: str, role: UserRole) -> User:
        target = await self._get_target(caller, user_id)
        authorize(caller, Resource.user, Action.set_role, Target.of_user(target))
        if target.role == role:
            return _public(target)

        updated = await self.store.update_user(user_id, {"role": role.value})
        if updated is None:
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} role set to {role.value} by admin {caller.id}")
        return _public(updated)

    async def stats(self, caller: CurrentUser) -> UserStats:
        authorize(caller, Resource.user, Action.list)
        users = await self.store.list_users()
        return UserStats(
            total=len(users),
            pending=sum(1 for u in users if u.status == UserStatus.pending),
            active=sum(1 for u in users if u.status == UserStatus.active),
            rejected=sum(1 for u in users if u.status == UserStatus.rejected),
            commercials=sum(1 for u in users if u.role == UserRole.commercial),
            technicians=sum(1 for u in users if u.role == UserRole.technician),
            admins=sum(1 for u in users if u.role == UserRole.admin),
        )

    async def seed_demo_accounts(self) -> int:
        """
        Create the active demo accounts that are missing. Returns how many were added.
        """
        created = 0
        for email, password, name, role in DEMO_ACCOUNTS:
            if await self.store.get_user_by_email(email):
                continue
            await self.store.create_user({
                "email": email,
                "password_hash": get_password_hash(password),
                "name": name,
                "role": role.value,
                "status": UserStatus.active.value,
            })
            created += 1
        if created:
            logger.info(f"Seeded {created} demo accounts")
        return created

    async def _get_target(self, caller: CurrentUser, user_id: str) -> UserInDB:
        # Non-admins are refused before we reveal whether the id exists
        authorize(caller, Resource.user, Action.read)
        target = await self.store.get_user(user_id)
        if target is None:
            raise NotFoundError("User not found")
        return target
