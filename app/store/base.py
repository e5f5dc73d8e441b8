"""
Storage interface shared by the SQL and in-memory backends.

Every method is a single logical read or write. ``update_declaration``
accepts an ``expected`` mapping that turns the write into a compare-and-set:
the row is only changed when all expected column values still hold, and
``None`` is returned when nothing matched.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.schemas.category import Category
from app.schemas.client import ClientInDB
from app.schemas.declaration import DeclarationInDB
from app.schemas.user import UserInDB

DEFAULT_CATEGORIES: Sequence[Tuple[str, str]] = (
    ("1", "Appliance"),
    ("2", "Computing"),
    ("3", "Telephony"),
    ("4", "Audio/Video"),
    ("5", "Air conditioning"),
    ("6", "Plumbing"),
    ("7", "Other"),
)


class Store(ABC):
    name: str = "abstract"

    # Users

    @abstractmethod
    async def create_user(self, values: Dict[str, Any]) -> UserInDB: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserInDB]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserInDB]:
        """Case-insensitive lookup."""

    @abstractmethod
    async def list_users(self, status: Optional[str] = None) -> List[UserInDB]:
        """Newest first."""

    @abstractmethod
    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Optional[UserInDB]: ...

    # Categories

    @abstractmethod
    async def seed_categories(self, categories: Sequence[Tuple[str, str]] = DEFAULT_CATEGORIES) -> None:
        """Insert the categories that are missing; existing rows are left alone."""

    @abstractmethod
    async def list_categories(self) -> List[Category]:
        """Ordered by name."""

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]: ...

    # Clients

    @abstractmethod
    async def create_client(self, values: Dict[str, Any]) -> ClientInDB: ...

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[ClientInDB]: ...

    @abstractmethod
    async def list_clients(self, commercial_id: Optional[str] = None) -> List[ClientInDB]:
        """Ordered by name; ``commercial_id`` restricts to one owner."""

    @abstractmethod
    async def update_client(self, client_id: str, values: Dict[str, Any]) -> Optional[ClientInDB]: ...

    @abstractmethod
    async def delete_client(self, client_id: str) -> bool:
        """Delete only when no declaration references the client."""

    @abstractmethod
    async def count_client_declarations(self, client_id: str) -> int: ...

    # Declarations

    @abstractmethod
    async def create_declaration(self, values: Dict[str, Any]) -> DeclarationInDB: ...

    @abstractmethod
    async def get_declaration(self, declaration_id: str) -> Optional[DeclarationInDB]: ...

    @abstractmethod
    async def list_declarations(
        self,
        commercial_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[DeclarationInDB]:
        """Newest first."""

    @abstractmethod
    async def update_declaration(
        self,
        declaration_id: str,
        values: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[DeclarationInDB]: ...

    @abstractmethod
    async def delete_declaration(self, declaration_id: str) -> bool: ...

    # Lifecycle

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
