from fastapi import APIRouter, Depends
from app.store import Store, get_store

router = APIRouter()

@router.get("")
async def health_check(store: Store = Depends(get_store)):
    db_status = "connected" if await store.ping() else "unreachable"

    return {
        "status": "ok",
        "message": "API is running",
        "store": store.name,
        "database": db_status
    }
