"""
Load endpoints: manager CRUD and assignment, driver accept / decline /
proof of delivery / documents.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.api.v1.deps import (get_current_user, get_db, get_dispatcher,
                                     require_driver, require_manager)
from freightdesk.models.load import LoadStatus
from freightdesk.models.user import User
from freightdesk.schemas.common import MessageResponse
from freightdesk.schemas.load import (AssignRequest, DocumentsRequest, LoadCreate,
                                      LoadEnvelope, LoadList, LoadRead, LoadUpdate,
                                      ProofOfDeliveryRequest)
from freightdesk.services import loads as load_service
from freightdesk.services.notifications import NotificationDispatcher

router = APIRouter(prefix="/loads", tags=["loads"])


def _envelope(load, message: str | None = None) -> LoadEnvelope:
    return LoadEnvelope(message=message, load=LoadRead.model_validate(load))


# ── Manager ─────────────────────────────────────────────────────────
@router.post("", response_model=LoadEnvelope, status_code=201)
async def create_load(
    body: LoadCreate,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    manager: User = Depends(require_manager),
) -> LoadEnvelope:
    load = await load_service.create_load(db, dispatcher, manager, body)
    return _envelope(load, "Load created successfully")


@router.get("", response_model=LoadList)
async def list_loads(
    status: Optional[LoadStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LoadList:
    """Managers see loads they created; drivers see loads assigned to them."""
    loads = await load_service.list_loads(db, current_user, status)
    return LoadList(count=len(loads), loads=[LoadRead.model_validate(load) for load in loads])


@router.get("/{load_id}", response_model=LoadEnvelope)
async def get_load(
    load_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LoadEnvelope:
    load = await load_service.get_load(db, load_id, current_user)
    return _envelope(load)


@router.patch("/{load_id}", response_model=LoadEnvelope)
async def update_load(
    load_id: str,
    body: LoadUpdate,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> LoadEnvelope:
    load = await load_service.update_load(db, load_id, body)
    return _envelope(load, "Load updated successfully")


@router.delete("/{load_id}", response_model=MessageResponse)
async def delete_load(
    load_id: str,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> MessageResponse:
    await load_service.delete_load(db, load_id)
    return MessageResponse(message="Load deleted successfully")


@router.patch("/{load_id}/assign", response_model=LoadEnvelope)
async def assign_driver(
    load_id: str,
    body: AssignRequest,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    _manager: User = Depends(require_manager),
) -> LoadEnvelope:
    load = await load_service.assign_driver(db, dispatcher, load_id, body.driver_id)
    return _envelope(load, "Driver assigned successfully")


# ── Driver ──────────────────────────────────────────────────────────
@router.patch("/{load_id}/accept", response_model=LoadEnvelope)
async def accept_load(
    load_id: str,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    driver: User = Depends(require_driver),
) -> LoadEnvelope:
    load = await load_service.accept_load(db, dispatcher, load_id, driver)
    return _envelope(load, "Load accepted successfully")


@router.patch("/{load_id}/decline", response_model=LoadEnvelope)
async def decline_load(
    load_id: str,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    driver: User = Depends(require_driver),
) -> LoadEnvelope:
    load = await load_service.decline_load(db, dispatcher, load_id, driver)
    return _envelope(load, "Load declined")


@router.post("/{load_id}/pod", response_model=LoadEnvelope)
async def upload_proof_of_delivery(
    load_id: str,
    body: ProofOfDeliveryRequest,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    driver: User = Depends(require_driver),
) -> LoadEnvelope:
    load = await load_service.upload_proof_of_delivery(db, dispatcher, load_id, driver, body.image)
    return _envelope(load, "Proof of delivery uploaded successfully")


@router.post("/{load_id}/documents", response_model=LoadEnvelope)
async def upload_documents(
    load_id: str,
    body: DocumentsRequest,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    driver: User = Depends(require_driver),
) -> LoadEnvelope:
    load = await load_service.upload_documents(
        db, dispatcher, load_id, driver, body.invoices, body.documents
    )
    return _envelope(load, "Documents uploaded successfully")
