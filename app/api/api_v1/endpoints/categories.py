from typing import List, Any
from fastapi import APIRouter, Depends
from app.schemas.category import Category
from app.services.policy import Action, Resource, authorize
from app.store import Store, get_store

router = APIRouter()

@router.get("", response_model=List[Category])
async def get_categories(store: Store = Depends(get_store)) -> Any:
    """
    Product categories, ordered by name. Public.
    """
    authorize(None, Resource.category, Action.list)
    return await store.list_categories()
