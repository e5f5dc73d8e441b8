from fastapi import APIRouter

from app.api.api_v1.endpoints import admin, auth, categories, clients, declarations, health, upload

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(declarations.router, prefix="/declarations", tags=["declarations"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(upload.router, prefix="/upload", tags=["upload"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
