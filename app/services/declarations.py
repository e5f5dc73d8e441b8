"""
Declaration lifecycle.

A declaration moves ``new -> in_progress -> resolved`` and never back. Each
transition is a single conditional write keyed on the expected source status
(and, past the claim, on the assigned technician), so concurrent callers
cannot both win: the loser's write matches no row and gets a ConflictError.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
import logging
import uuid

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.schemas.category import Category
from app.schemas.client import ClientInDB, ClientSummary
from app.schemas.declaration import (
    AccessoryItem, Declaration, DeclarationCreate, DeclarationInDB,
    DeclarationStatus, DeclarationUpdate
)
from app.schemas.user import CurrentUser, UserInDB, UserSummary
from app.services.policy import Action, Resource, Target, authorize
from app.store.base import Store

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _accessories(items: Sequence[AccessoryItem]) -> List[Dict[str, Any]]:
    return [
        {"id": item.id or str(uuid.uuid4()), "name": item.name, "checked": item.checked}
        for item in items
    ]


class DeclarationService:
    def __init__(self, store: Store):
        self.store = store

    # Reads

    async def list_declarations(
        self,
        caller: CurrentUser,
        status: Optional[DeclarationStatus] = None,
    ) -> List[Declaration]:
        decision = authorize(caller, Resource.declaration, Action.list)
        records = await self.store.list_declarations(
            commercial_id=decision.owner_scope,
            status=status.value if status else None,
        )
        return await self._enrich(records)

    async def get_declaration(self, caller: CurrentUser, declaration_id: str) -> Declaration:
        record = await self._load(declaration_id)
        authorize(caller, Resource.declaration, Action.read, Target.of_declaration(record))
        return (await self._enrich([record]))[0]

    # Commercial side

    async def create_declaration(self, caller: CurrentUser, data: DeclarationCreate) -> Declaration:
        """
        Open a ticket. The status is always ``new`` whatever the payload says.
        """
        authorize(caller, Resource.declaration, Action.create)
        await self._check_references(caller, data.category_id, data.client_id)

        record = await self.store.create_declaration({
            "commercial_id": caller.id,
            "client_id": data.client_id,
            "category_id": data.category_id,
            "product_name": data.product_name,
            "reference": data.reference,
            "serial_number": data.serial_number,
            "description": data.description,
            "photo_url": data.photo_url,
            "accessories": _accessories(data.accessories),
            "status": DeclarationStatus.new.value,
            "technician_id": None,
            "technician_remarks": None,
            "created_at": _now(),
            "taken_at": None,
            "resolved_at": None,
        })
        logger.info(f"Declaration created: {record.id} by commercial {caller.id}")
        return (await self._enrich([record]))[0]

    async def update_declaration(
        self,
        caller: CurrentUser,
        declaration_id: str,
        data: DeclarationUpdate,
    ) -> Declaration:
        """
        Correct the core fields of a ticket nobody has taken yet.
        """
        record = await self._load(declaration_id)
        authorize(caller, Resource.declaration, Action.update, Target.of_declaration(record))

        values = data.model_dump(exclude_unset=True, exclude={"accessories"})
        if data.accessories is not None:
            values["accessories"] = _accessories(data.accessories)
        for required in ("category_id", "client_id", "product_name"):
            if required in values and values[required] is None:
                raise ValidationError(f"{required} cannot be empty", field=required)
        if "category_id" in values or "client_id" in values:
            await self._check_references(
                caller,
                values.get("category_id", record.category_id),
                values.get("client_id", record.client_id),
            )
        if not values:
            if record.status != DeclarationStatus.new:
                raise ConflictError("Cannot modify a declaration that has already been taken")
            return (await self._enrich([record]))[0]

        updated = await self.store.update_declaration(
            declaration_id,
            values,
            expected={"status": DeclarationStatus.new.value, "commercial_id": caller.id},
        )
        if updated is None:
            await self._raise_for_missing(declaration_id)
            raise ConflictError("Cannot modify a declaration that has already been taken")
        logger.info(f"Declaration updated: {declaration_id}")
        return (await self._enrich([updated]))[0]

    async def delete_declaration(self, caller: CurrentUser, declaration_id: str) -> None:
        """
        Remove a ticket. Allowed to its creator whatever the status.
        """
        record = await self._load(declaration_id)
        authorize(caller, Resource.declaration, Action.delete, Target.of_declaration(record))
        if not await self.store.delete_declaration(declaration_id):
            raise NotFoundError("Declaration not found")
        logger.info(f"Declaration deleted: {declaration_id} (was {record.status.value})")

    # Technician side

    async def take(self, caller: CurrentUser, declaration_id: str) -> Declaration:
        """
        Claim a new ticket. Exactly one of several concurrent callers succeeds.
        """
        authorize(caller, Resource.declaration, Action.take)

        updated = await self.store.update_declaration(
            declaration_id,
            {
                "status": DeclarationStatus.in_progress.value,
                "technician_id": caller.id,
                "taken_at": _now(),
            },
            expected={"status": DeclarationStatus.new.value},
        )
        if updated is None:
            await self._raise_for_missing(declaration_id)
            logger.warning(f"Declaration {declaration_id} already taken, claim by {caller.id} refused")
            raise ConflictError("This declaration has already been taken")
        logger.info(f"Declaration {declaration_id} taken by technician {caller.id}")
        return (await self._enrich([updated]))[0]

    async def update_remarks(
        self,
        caller: CurrentUser,
        declaration_id: str,
        remarks: Optional[str],
    ) -> Declaration:
        """
        Replace the technician remarks while the ticket is in progress.
        """
        record = await self._load(declaration_id)
        authorize(caller, Resource.declaration, Action.update_remarks, Target.of_declaration(record))

        updated = await self.store.update_declaration(
            declaration_id,
            {"technician_remarks": remarks},
            expected={
                "status": DeclarationStatus.in_progress.value,
                "technician_id": caller.id,
            },
        )
        if updated is None:
            await self._raise_for_missing(declaration_id)
            raise ConflictError("Remarks can only be edited while the declaration is in progress")
        return (await self._enrich([updated]))[0]

    async def resolve(
        self,
        caller: CurrentUser,
        declaration_id: str,
        remarks: Optional[str] = None,
    ) -> Declaration:
        """
        Close a ticket. Only its assigned technician may, and only once.
        """
        record = await self._load(declaration_id)
        authorize(caller, Resource.declaration, Action.resolve, Target.of_declaration(record))

        values: Dict[str, Any] = {
            "status": DeclarationStatus.resolved.value,
            "resolved_at": _now(),
        }
        if remarks is not None:
            values["technician_remarks"] = remarks

        updated = await self.store.update_declaration(
            declaration_id,
            values,
            expected={
                "status": DeclarationStatus.in_progress.value,
                "technician_id": caller.id,
            },
        )
        if updated is None:
            await self._raise_for_missing(declaration_id)
            logger.warning(f"Resolve of {declaration_id} by {caller.id} refused, not in progress")
            raise ConflictError("This declaration is not in progress")
        logger.info(f"Declaration {declaration_id} resolved by technician {caller.id}")
        return (await self._enrich([updated]))[0]

    # Helpers

    async def _load(self, declaration_id: str) -> DeclarationInDB:
        record = await self.store.get_declaration(declaration_id)
        if record is None:
            raise NotFoundError("Declaration not found")
        return record

    async def _raise_for_missing(self, declaration_id: str) -> None:
        if await self.store.get_declaration(declaration_id) is None:
            raise NotFoundError("Declaration not found")

    async def _check_references(self, caller: CurrentUser, category_id: str, client_id: str) -> None:
        if await self.store.get_category(category_id) is None:
            raise ValidationError("Unknown category", field="category_id")
        client = await self.store.get_client(client_id)
        if client is None:
            raise ValidationError("Unknown client", field="client_id")
        # A ticket may only be opened for one of the caller's own clients
        authorize(caller, Resource.client, Action.read, Target.of_client(client))

    async def _enrich(self, records: Sequence[DeclarationInDB]) -> List[Declaration]:
        clients: Dict[str, Optional[ClientInDB]] = {}
        categories: Dict[str, Optional[Category]] = {}
        users: Dict[str, Optional[UserInDB]] = {}

        async def user(user_id: Optional[str]) -> Optional[UserSummary]:
            if not user_id:
                return None
            if user_id not in users:
                users[user_id] = await self.store.get_user(user_id)
            found = users[user_id]
            return UserSummary(id=found.id, name=found.name, email=found.email, role=found.role) if found else None

        enriched = []
        for record in records:
            if record.client_id not in clients:
                clients[record.client_id] = await self.store.get_client(record.client_id)
            if record.category_id not in categories:
                categories[record.category_id] = await self.store.get_category(record.category_id)
            client = clients[record.client_id]
            enriched.append(Declaration(
                **record.model_dump(),
                client=ClientSummary.model_validate(client.model_dump()) if client else None,
                category=categories[record.category_id],
                commercial=await user(record.commercial_id),
                technician=await user(record.technician_id),
            ))
        return enriched
