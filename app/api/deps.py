from fastapi import Depends, Request

from app.core.config import Settings, settings as default_settings
from app.services.accounts import AccountService
from app.services.clients import ClientService
from app.services.declarations import DeclarationService
from app.store import Store, get_store


def get_settings(request: Request) -> Settings:
    """
    Settings the running app was built with.
    """
    return getattr(request.app.state, "settings", default_settings)


def get_account_service(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(store, settings)


def get_client_service(store: Store = Depends(get_store)) -> ClientService:
    return ClientService(store)


def get_declaration_service(store: Store = Depends(get_store)) -> DeclarationService:
    return DeclarationService(store)
