"""
Process-local store for demos and tests.

State lives for the lifetime of the process only. Every mutation runs under
one ``asyncio.Lock`` with no await between the check and the write, which
makes the compare-and-set in ``update_declaration`` atomic for all requests
served by this event loop.
"""

import asyncio
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.errors import DuplicateEmailError
from app.schemas.category import Category
from app.schemas.client import ClientInDB
from app.schemas.declaration import DeclarationInDB
from app.schemas.user import UserInDB
from app.store.base import DEFAULT_CATEGORIES, Store


def _new_row(values: Dict[str, Any]) -> Dict[str, Any]:
    row = copy.deepcopy(values)
    row.setdefault("id", str(uuid.uuid4()))
    row.setdefault("created_at", datetime.now(timezone.utc))
    return row


class MemoryStore(Store):
    name = "memory"

    def __init__(self):
        self._lock = asyncio.Lock()
        self._users: Dict[str, Dict[str, Any]] = {}
        self._clients: Dict[str, Dict[str, Any]] = {}
        self._categories: Dict[str, Dict[str, Any]] = {}
        self._declarations: Dict[str, Dict[str, Any]] = {}

    # Users

    async def create_user(self, values: Dict[str, Any]) -> UserInDB:
        async with self._lock:
            row = _new_row(values)
            row["email"] = row["email"].strip().lower()
            if any(u["email"] == row["email"] for u in self._users.values()):
                raise DuplicateEmailError()
            self._users[row["id"]] = row
            return UserInDB.model_validate(copy.deepcopy(row))

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        row = self._users.get(user_id)
        return UserInDB.model_validate(copy.deepcopy(row)) if row else None

    async def get_user_by_email(self, email: str) -> Optional[UserInDB]:
        email = email.strip().lower()
        for row in self._users.values():
            if row["email"] == email:
                return UserInDB.model_validate(copy.deepcopy(row))
        return None

    async def list_users(self, status: Optional[str] = None) -> List[UserInDB]:
        rows = [r for r in self._users.values() if status is None or r["status"] == status]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [UserInDB.model_validate(copy.deepcopy(r)) for r in rows]

    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Optional[UserInDB]:
        async with self._lock:
            row = self._users.get(user_id)
            if row is None:
                return None
            row.update(copy.deepcopy(values))
            return UserInDB.model_validate(copy.deepcopy(row))

    # Categories

    async def seed_categories(self, categories: Sequence[Tuple[str, str]] = DEFAULT_CATEGORIES) -> None:
        async with self._lock:
            for category_id, name in categories:
                self._categories.setdefault(category_id, {"id": category_id, "name": name})

    async def list_categories(self) -> List[Category]:
        rows = sorted(self._categories.values(), key=lambda r: r["name"].lower())
        return [Category.model_validate(r) for r in rows]

    async def get_category(self, category_id: str) -> Optional[Category]:
        row = self._categories.get(category_id)
        return Category.model_validate(row) if row else None

    # Clients

    async def create_client(self, values: Dict[str, Any]) -> ClientInDB:
        async with self._lock:
            row = _new_row(values)
            self._clients[row["id"]] = row
            return ClientInDB.model_validate(copy.deepcopy(row))

    async def get_client(self, client_id: str) -> Optional[ClientInDB]:
        row = self._clients.get(client_id)
        return ClientInDB.model_validate(copy.deepcopy(row)) if row else None

    async def list_clients(self, commercial_id: Optional[str] = None) -> List[ClientInDB]:
        rows = [
            r for r in self._clients.values()
            if commercial_id is None or r["commercial_id"] == commercial_id
        ]
        rows.sort(key=lambda r: r["name"].lower())
        return [ClientInDB.model_validate(copy.deepcopy(r)) for r in rows]

    async def update_client(self, client_id: str, values: Dict[str, Any]) -> Optional[ClientInDB]:
        async with self._lock:
            row = self._clients.get(client_id)
            if row is None:
                return None
            row.update(copy.deepcopy(values))
            return ClientInDB.model_validate(copy.deepcopy(row))

    async def delete_client(self, client_id: str) -> bool:
        async with self._lock:
            if client_id not in self._clients:
                return False
            if any(d["client_id"] == client_id for d in self._declarations.values()):
                return False
            del self._clients[client_id]
            return True

    async def count_client_declarations(self, client_id: str) -> int:
        return sum(1 for d in self._declarations.values() if d["client_id"] == client_id)

    # Declarations

    async def create_declaration(self, values: Dict[str, Any]) -> DeclarationInDB:
        async with self._lock:
            row = _new_row(values)
            self._declarations[row["id"]] = row
            return DeclarationInDB.model_validate(copy.deepcopy(row))

    async def get_declaration(self, declaration_id: str) -> Optional[DeclarationInDB]:
        row = self._declarations.get(declaration_id)
        return DeclarationInDB.model_validate(copy.deepcopy(row)) if row else None

    async def list_declarations(
        self,
        commercial_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[DeclarationInDB]:
        rows = [
            r for r in self._declarations.values()
            if (commercial_id is None or r["commercial_id"] == commercial_id)
            and (status is None or r["status"] == status)
        ]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [DeclarationInDB.model_validate(copy.deepcopy(r)) for r in rows]

    async def update_declaration(
        self,
        declaration_id: str,
        values: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[DeclarationInDB]:
        async with self._lock:
            row = self._declarations.get(declaration_id)
            if row is None:
                return None
            for field, value in (expected or {}).items():
                if row.get(field) != value:
                    return None
            row.update(copy.deepcopy(values))
            return DeclarationInDB.model_validate(copy.deepcopy(row))

    async def delete_declaration(self, declaration_id: str) -> bool:
        async with self._lock:
            return self._declarations.pop(declaration_id, None) is not None
