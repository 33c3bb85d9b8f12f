"""
Dependency providers for the API.

Services are built once per session factory and handed to route handlers
through FastAPI's ``Depends``; tests swap the factory with
``app.dependency_overrides``.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from db import SessionLocal
from services.accounts import AccountsService
from services.inventory import InventoryService
from services.issue_workflow import IssueWorkflow
from services.qr_codes import QRCodeService
from settings import settings
from storage.file_storage import FileStorage


def get_session_factory() -> sessionmaker:
    return SessionLocal


@lru_cache(maxsize=None)
def get_qr_service() -> QRCodeService:
    return QRCodeService(FileStorage(settings.MEDIA_ROOT), enabled=settings.QR_CODES_ENABLED)


@lru_cache(maxsize=None)
def _workflow_for(session_factory: sessionmaker) -> IssueWorkflow:
    return IssueWorkflow(session_factory, loan_period_days=settings.LOAN_PERIOD_DAYS)


@lru_cache(maxsize=None)
def _accounts_for(session_factory: sessionmaker) -> AccountsService:
    return AccountsService(session_factory)


@lru_cache(maxsize=None)
def _inventory_for(session_factory: sessionmaker, qr_service: QRCodeService) -> InventoryService:
    return InventoryService(session_factory, qr_service=qr_service)


def get_workflow(session_factory: sessionmaker = Depends(get_session_factory)) -> IssueWorkflow:
    return _workflow_for(session_factory)


def get_accounts(session_factory: sessionmaker = Depends(get_session_factory)) -> AccountsService:
    return _accounts_for(session_factory)


def get_inventory(
    session_factory: sessionmaker = Depends(get_session_factory),
    qr_service: QRCodeService = Depends(get_qr_service),
) -> InventoryService:
    return _inventory_for(session_factory, qr_service)
