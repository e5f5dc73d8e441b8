from typing import List
import logging

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.schemas.client import ClientCreate, ClientInDB, ClientUpdate
from app.schemas.user import CurrentUser
from app.services.policy import Action, Resource, Target, authorize
from app.store.base import Store

logger = logging.getLogger(__name__)


class ClientService:
    """Customer records, each owned by the commercial who created it."""

    def __init__(self, store: Store):
        self.store = store

    async def list_clients(self, caller: CurrentUser) -> List[ClientInDB]:
        decision = authorize(caller, Resource.client, Action.list)
        return await self.store.list_clients(commercial_id=decision.owner_scope)

    async def get_client(self, caller: CurrentUser, client_id: str) -> ClientInDB:
        client = await self._load(client_id)
        authorize(caller, Resource.client, Action.read, Target.of_client(client))
        return client

    async def create_client(self, caller: CurrentUser, client_in: ClientCreate) -> ClientInDB:
        authorize(caller, Resource.client, Action.create)
        client = await self.store.create_client({
            **client_in.model_dump(),
            "commercial_id": caller.id,
        })
        logger.info(f"Client created: {client.id} by commercial {caller.id}")
        return client

    async def update_client(self, caller: CurrentUser, client_id: str, client_in: ClientUpdate) -> ClientInDB:
        client = await self._load(client_id)
        authorize(caller, Resource.client, Action.update, Target.of_client(client))

        update_data = client_in.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] is None:
            raise ValidationError("Name cannot be empty", field="name")
        if not update_data:
            return client
        updated = await self.store.update_client(client_id, update_data)
        if updated is None:
            raise NotFoundError("Client not found")
        logger.info(f"Client updated: {client_id}")
        return updated

    async def delete_client(self, caller: CurrentUser, client_id: str) -> None:
        """
        Delete a client that no declaration references.
        """
        client = await self._load(client_id)
        authorize(caller, Resource.client, Action.delete, Target.of_client(client))

        if not await self.store.delete_client(client_id):
            if await self.store.get_client(client_id) is None:
                raise NotFoundError("Client not found")
            count = await self.store.count_client_declarations(client_id)
            logger.warning(f"Refused to delete client {client_id}: {count} declaration(s) reference it")
            raise ConflictError("Cannot delete a client that has declarations")
        logger.info(f"Client deleted: {client_id}")

    async def _load(self, client_id: str) -> ClientInDB:
        client = await self.store.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client
