from typing import List, Any, Dict
from fastapi import APIRouter, Depends, Path, status
from app.api.deps import get_client_service
from app.core.auth import get_current_user
from app.schemas.client import Client, ClientCreate, ClientUpdate
from app.schemas.user import CurrentUser
from app.services.clients import ClientService

router = APIRouter()

@router.get("", response_model=List[Client])
async def get_clients(
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service)
) -> Any:
    """
    Retrieve clients.

    Commercials see their own clients, admins see all of them.
    """
    return await clients.list_clients(current_user)

@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
    *,
    client_in: ClientCreate,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service)
) -> Any:
    """
    Create new client owned by the calling commercial.
    """
    return await clients.create_client(current_user, client_in)

@router.get("/{client_id}", response_model=Client)
async def read_client(
    *,
    client_id: str = Path(..., description="The ID of the client to retrieve"),
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service)
) -> Any:
    """
    Get client by ID.
    """
    return await clients.get_client(current_user, client_id)

@router.put("/{client_id}", response_model=Client)
async def update_client(
    *,
    client_id: str = Path(..., description="The ID of the client to update"),
    client_in: ClientUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service)
) -> Any:
    """
    Update client. Only its owning commercial may.
    """
    return await clients.update_client(current_user, client_id, client_in)

@router.delete("/{client_id}", response_model=Dict[str, Any])
async def delete_client(
    *,
    client_id: str = Path(..., description="The ID of the client to delete"),
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service)
) -> Any:
    """
    Delete client.

    Refused while any declaration still references the client.
    """
    await clients.delete_client(current_user, client_id)
    return {"success": True, "message": "Client deleted"}
