"""
Relational store over async SQLAlchemy (Supabase Postgres in production).

Conditional writes are issued as a single ``UPDATE ... WHERE`` statement and
judged by the affected-row count, so two technicians racing on the same
declaration cannot both succeed.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple
import logging

from sqlalchemy import delete, exists, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.core.database import create_session_factory
from app.core.errors import ConflictError, DependencyError, DuplicateEmailError
from app.db.models import Category as CategoryModel
from app.db.models import Client as ClientModel
from app.db.models import Declaration as DeclarationModel
from app.db.models import User as UserModel
from app.schemas.category import Category
from app.schemas.client import ClientInDB
from app.schemas.declaration import DeclarationInDB
from app.schemas.user import UserInDB
from app.store.base import DEFAULT_CATEGORIES, Store

logger = logging.getLogger(__name__)


def _with_created_at(values: Dict[str, Any]) -> Dict[str, Any]:
    values = dict(values)
    values.setdefault("created_at", datetime.now(timezone.utc))
    return values


class SqlStore(Store):
    name = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Integrity error in {operation}: {e.orig}")
                raise ConflictError("Operation conflicts with existing data") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error in {operation}: {e}")
                raise DependencyError() from e

    # Users

    async def create_user(self, values: Dict[str, Any]) -> UserInDB:
        values = _with_created_at(values)
        values["email"] = values["email"].lower()
        try:
            async with self._session("create_user") as db:
                db_user = UserModel(**values)
                db.add(db_user)
                await db.commit()
                await db.refresh(db_user)
                return UserInDB.model_validate(db_user)
        except ConflictError as e:
            # unique index on users.email
            raise DuplicateEmailError() from e

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        async with self._session("get_user") as db:
            db_user = await db.get(UserModel, user_id)
            return UserInDB.model_validate(db_user) if db_user else None

    async def get_user_by_email(self, email: str) -> Optional[UserInDB]:
        async with self._session("get_user_by_email") as db:
            result = await db.execute(
                select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
            )
            db_user = result.scalar_one_or_none()
            return UserInDB.model_validate(db_user) if db_user else None

    async def list_users(self, status: Optional[str] = None) -> List[UserInDB]:
        async with self._session("list_users") as db:
            query = select(UserModel).order_by(UserModel.created_at.desc())
            if status:
                query = query.where(UserModel.status == status)
            result = await db.execute(query)
            return [UserInDB.model_validate(u) for u in result.scalars().all()]

    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Optional[UserInDB]:
        async with self._session("update_user") as db:
            db_user = await db.get(UserModel, user_id)
            if not db_user:
                return None
            for field, value in values.items():
                setattr(db_user, field, value)
            await db.commit()
            await db.refresh(db_user)
            return UserInDB.model_validate(db_user)

    # Categories

    async def seed_categories(self, categories: Sequence[Tuple[str, str]] = DEFAULT_CATEGORIES) -> None:
        async with self._session("seed_categories") as db:
            result = await db.execute(select(CategoryModel.id))
            existing = set(result.scalars().all())
            for category_id, name in categories:
                if category_id not in existing:
                    db.add(CategoryModel(id=category_id, name=name))
            await db.commit()

    async def list_categories(self) -> List[Category]:
        async with self._session("list_categories") as db:
            result = await db.execute(select(CategoryModel).order_by(CategoryModel.name))
            return [Category.model_validate(c) for c in result.scalars().all()]

    async def get_category(self, category_id: str) -> Optional[Category]:
        async with self._session("get_category") as db:
            db_category = await db.get(CategoryModel, category_id)
            return Category.model_validate(db_category) if db_category else None

    # Clients

    async def create_client(self, values: Dict[str, Any]) -> ClientInDB:
        async with self._session("create_client") as db:
            db_client = ClientModel(**_with_created_at(values))
            db.add(db_client)
            await db.commit()
            await db.refresh(db_client)
            return ClientInDB.model_validate(db_client)

    async def get_client(self, client_id: str) -> Optional[ClientInDB]:
        async with self._session("get_client") as db:
            db_client = await db.get(ClientModel, client_id)
            return ClientInDB.model_validate(db_client) if db_client else None

    async def list_clients(self, commercial_id: Optional[str] = None) -> List[ClientInDB]:
        async with self._session("list_clients") as db:
            query = select(ClientModel).order_by(ClientModel.name)
            if commercial_id:
                query = query.where(ClientModel.commercial_id == commercial_id)
            result = await db.execute(query)
            return [ClientInDB.model_validate(c) for c in result.scalars().all()]

    async def update_client(self, client_id: str, values: Dict[str, Any]) -> Optional[ClientInDB]:
        async with self._session("update_client") as db:
            db_client = await db.get(ClientModel, client_id)
            if not db_client:
                return None
            for field, value in values.items():
                setattr(db_client, field, value)
            await db.commit()
            await db.refresh(db_client)
            return ClientInDB.model_validate(db_client)

    async def delete_client(self, client_id: str) -> bool:
        referenced = exists().where(DeclarationModel.client_id == client_id)
        async with self._session("delete_client") as db:
            result = await db.execute(
                delete(ClientModel).where(ClientModel.id == client_id, ~referenced)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            return result.rowcount > 0

    async def count_client_declarations(self, client_id: str) -> int:
        async with self._session("count_client_declarations") as db:
            result = await db.execute(
                select(func.count()).select_from(DeclarationModel).where(DeclarationModel.client_id == client_id)
            )
            return int(result.scalar_one())

    # Declarations

    async def create_declaration(self, values: Dict[str, Any]) -> DeclarationInDB:
        async with self._session("create_declaration") as db:
            db_declaration = DeclarationModel(**_with_created_at(values))
            db.add(db_declaration)
            await db.commit()
            await db.refresh(db_declaration)
            return DeclarationInDB.model_validate(db_declaration)

    async def get_declaration(self, declaration_id: str) -> Optional[DeclarationInDB]:
        async with self._session("get_declaration") as db:
            db_declaration = await db.get(DeclarationModel, declaration_id)
            return DeclarationInDB.model_validate(db_declaration) if db_declaration else None

    async def list_declarations(
        self,
        commercial_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[DeclarationInDB]:
        async with self._session("list_declarations") as db:
            query = select(DeclarationModel).order_by(DeclarationModel.created_at.desc())
            if commercial_id:
                query = query.where(DeclarationModel.commercial_id == commercial_id)
            if status:
                query = query.where(DeclarationModel.status == status)
            result = await db.execute(query)
            return [DeclarationInDB.model_validate(d) for d in result.scalars().all()]

    async def update_declaration(
        self,
        declaration_id: str,
        values: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[DeclarationInDB]:
        conditions = [DeclarationModel.id == declaration_id]
        for field, value in (expected or {}).items():
            column = getattr(DeclarationModel, field)
            conditions.append(column.is_(None) if value is None else column == value)

        async with self._session("update_declaration") as db:
            result = await db.execute(
                update(DeclarationModel)
                .where(*conditions)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                return None
            await db.commit()
            db_declaration = await db.get(DeclarationModel, declaration_id)
            if db_declaration is None:
                # deleted between the update and the read back
                return None
            return DeclarationInDB.model_validate(db_declaration)

    async def delete_declaration(self, declaration_id: str) -> bool:
        async with self._session("delete_declaration") as db:
            result = await db.execute(
                delete(DeclarationModel).where(DeclarationModel.id == declaration_id)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            return result.rowcount > 0

    # Lifecycle

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection pool closed")
