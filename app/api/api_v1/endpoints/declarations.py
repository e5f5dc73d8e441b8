from typing import List, Any, Dict, Optional
from fastapi import APIRouter, Depends, Path, Query, status
import logging
from app.api.deps import get_declaration_service
from app.core.auth import get_current_user
from app.schemas.declaration import (
    Declaration, DeclarationCreate, DeclarationUpdate, DeclarationStatus,
    RemarksUpdate, ResolveRequest
)
from app.schemas.user import CurrentUser
from app.services.declarations import DeclarationService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[Declaration])
async def get_declarations(
    *,
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service),
    status: Optional[DeclarationStatus] = Query(None, description="Filter by declaration status")
) -> Any:
    """
    Retrieve declarations, newest first.

    Commercials only see the declarations they created; technicians and
    admins see every declaration.
    """
    logger.info(f"Declaration list requested by user: {current_user.id}")
    return await declarations.list_declarations(current_user, status=status)

@router.post("", response_model=Declaration, status_code=status.HTTP_201_CREATED)
async def create_declaration(
    *,
    declaration_in: DeclarationCreate,
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Create new declaration.

    Requires commercial role. The declaration always starts as ``new``.
    """
    return await declarations.create_declaration(current_user, declaration_in)

@router.get("/{declaration_id}", response_model=Declaration)
async def read_declaration(
    *,
    declaration_id: str = Path(..., description="The ID of the declaration to retrieve"),
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Get declaration by ID.

    Commercials can only view their own declarations.
    """
    return await declarations.get_declaration(current_user, declaration_id)

@router.put("/{declaration_id}", response_model=Declaration)
async def update_declaration(
    *,
    declaration_id: str = Path(..., description="The ID of the declaration to update"),
    declaration_in: DeclarationUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Update declaration.

    Only the commercial who created it, and only while it is still new.
    """
    return await declarations.update_declaration(current_user, declaration_id, declaration_in)

@router.delete("/{declaration_id}", response_model=Dict[str, Any])
async def delete_declaration(
    *,
    declaration_id: str = Path(..., description="The ID of the declaration to delete"),
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Delete declaration.

    Only the commercial who created it can delete it, whatever its status.
    """
    await declarations.delete_declaration(current_user, declaration_id)
    return {"success": True, "message": "Declaration deleted"}

@router.post("/{declaration_id}/take", response_model=Declaration)
async def take_declaration(
    *,
    declaration_id: str = Path(..., description="The ID of the declaration to take"),
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Claim a new declaration.

    Requires technician role. Answers 409 when someone else took it first.
    """
    return await declarations.take(current_user, declaration_id)

@router.post("/{declaration_id}/resolve", response_model=Declaration)
async def resolve_declaration(
    *,
    declaration_id: str = Path(..., description="The ID of the declaration to resolve"),
    resolve_in: Optional[ResolveRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Mark a declaration as resolved.

    Only the assigned technician, and only while it is in progress.
    """
    remarks = resolve_in.remarks if resolve_in else None
    return await declarations.resolve(current_user, declaration_id, remarks)

@router.patch("/{declaration_id}/remarks", response_model=Declaration)
async def update_remarks(
    *,
    declaration_id: str = Path(..., description="The ID of the declaration"),
    remarks_in: RemarksUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    declarations: DeclarationService = Depends(get_declaration_service)
) -> Any:
    """
    Replace the technician remarks of an in-progress declaration.
    """
    return await declarations.update_remarks(current_user, declaration_id, remarks_in.technician_remarks)
