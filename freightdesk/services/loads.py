"""
Load lifecycle: creation, lookup, merge-patch updates and the driver-facing
status transitions.

Status changes are written as conditional UPDATEs matching the status and
revision that were read, so two drivers, or two taps from one driver, can
never both win the same transition, and document uploads never overwrite
each other. Notifications go out only after the state change is committed,
and a failed notification never undoes it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.core.config import settings
from freightdesk.core.exceptions import (Forbidden, InvalidState, NotFoundError,
                                         ValidationError)
from freightdesk.db.base import new_id
from freightdesk.models.load import (NON_REASSIGNABLE, Load, LoadStatus,
                                     compute_expected_payout,
                                     derive_load_number, sources_for)
from freightdesk.models.user import Role, User
from freightdesk.schemas.load import LoadCreate, LoadUpdate
from freightdesk.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^[0-9a-f]{32}$")
_IMAGE_PREFIXES = ("data:image/", "http://", "https://")

# Patch fields that may be explicitly cleared with ``null``.
_NULLABLE_PATCH_FIELDS = frozenset({"pallets", "expected_payout_date"})

_TRANSITION_ATTEMPTS = 3


# ── Pure helpers ────────────────────────────────────────────────────
def is_valid_image_reference(image: str | None) -> bool:
    """Embedded ``data:image/...`` payload or an http(s) URL."""
    return bool(image) and image.startswith(_IMAGE_PREFIXES)


def merge_load_patch(load: Load, patch: LoadUpdate) -> list[str]:
    """Apply the fields present in *patch* to *load*; return their names.

    Absent fields are left untouched. ``null`` clears a field only where
    the column allows it, otherwise it is ignored.
    """
    applied: list[str] = []
    for field, value in patch.model_dump(exclude_unset=True).items():
        if value is None and field not in _NULLABLE_PATCH_FIELDS:
            continue
        if isinstance(value, Enum):
            value = value.value
        setattr(load, field, value)
        applied.append(field)
    return applied


def _statuses(values: Iterable[LoadStatus]) -> list[str]:
    return [s.value for s in values]


# ── Lookup ──────────────────────────────────────────────────────────
async def _reload(db: AsyncSession, load_id: str) -> Load:
    result = await db.execute(
        select(Load).where(Load.id == load_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def find_load(db: AsyncSession, identifier: str) -> Load | None:
    """Resolve a load by primary id or by its 8-character load number."""
    ident = identifier.strip()
    query = select(Load).execution_options(populate_existing=True)
    if _ID_RE.match(ident.lower()):
        query = query.where(Load.id == ident.lower())
    else:
        query = (
            query.where(Load.load_number == ident.upper())
            .order_by(Load.created_at.desc())
            .limit(1)
        )
    result = await db.execute(query)
    return result.scalars().first()


async def get_load_or_404(db: AsyncSession, identifier: str) -> Load:
    load = await find_load(db, identifier)
    if load is None:
        raise NotFoundError("Load not found")
    return load


async def _get_driver(db: AsyncSession, driver_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == driver_id, User.role == Role.DRIVER.value)
    )
    driver = result.scalar_one_or_none()
    if driver is None:
        raise NotFoundError("Driver not found")
    return driver


async def _notify_then_reload(db: AsyncSession, load_id: str, pending: Awaitable[Any]) -> Load:
    """Send a notification for an already committed change, then re-read the load.

    A failed notification is logged and the session rolled back; the
    committed load state stays as it is.
    """
    try:
        await pending
    except Exception as exc:
        logger.warning("Notification for load %s failed, load state kept: %s", load_id, exc)
        await db.rollback()
    return await _reload(db, load_id)


# ── Manager operations ──────────────────────────────────────────────
async def create_load(
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
    manager: User,
    body: LoadCreate,
) -> Load:
    driver = await _get_driver(db, body.driver_id) if body.driver_id else None

    fields = body.model_dump(exclude={"driver_id", "expected_payout_date", "shipping_type"})
    load_id = new_id()
    load = Load(
        id=load_id,
        load_number=derive_load_number(load_id),
        created_by_id=manager.id,
        assigned_driver_id=driver.id if driver else None,
        shipping_type=body.shipping_type.value,
        expected_payout_date=body.expected_payout_date
        or compute_expected_payout(body.loading_date, body.payment_terms),
        status=LoadStatus.PENDING.value,
        invoices=[],
        documents=[],
        **fields,
    )
    db.add(load)
    await db.commit()
    logger.info("Load %s created by %s", load.load_number, manager.id)

    if driver is not None:
        return await _notify_then_reload(
            db, load_id, dispatcher.notify_load_assigned(driver.id, load)
        )
    return await _reload(db, load_id)


async def list_loads(
    db: AsyncSession, caller: User, status: LoadStatus | None = None
) -> list[Load]:
    query = select(Load).order_by(Load.created_at.desc())
    role = caller.role_enum
    if role is Role.DRIVER:
        query = query.where(Load.assigned_driver_id == caller.id)
    elif role is Role.MANAGER:
        query = query.where(Load.created_by_id == caller.id)
    if status is not None:
        query = query.where(Load.status == status.value)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_load(db: AsyncSession, identifier: str, caller: User) -> Load:
    load = await get_load_or_404(db, identifier)
    if caller.role_enum is Role.DRIVER and load.assigned_driver_id != caller.id:
        raise Forbidden("Not authorized to view this load")
    return load


async def update_load(db: AsyncSession, identifier: str, patch: LoadUpdate) -> Load:
    load = await get_load_or_404(db, identifier)
    if load.status == LoadStatus.COMPLETED.value:
        raise InvalidState("Cannot update a completed load")

    applied = merge_load_patch(load, patch)
    await db.commit()
    logger.info("Load %s updated: %s", load.load_number, ", ".join(applied) or "no changes")
    return await _reload(db, load.id)


async def delete_load(db: AsyncSession, identifier: str) -> None:
    load = await get_load_or_404(db, identifier)
    await db.delete(load)
    await db.commit()
    logger.info("Load %s deleted", load.load_number)


async def assign_driver(
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
    identifier: str,
    driver_id: str,
) -> Load:
    load = await get_load_or_404(db, identifier)
    load_id = load.id
    if LoadStatus(load.status) in NON_REASSIGNABLE:
        raise InvalidState("Cannot reassign a load that is already accepted or completed")
    driver = await _get_driver(db, driver_id)

    result = await db.execute(
        update(Load)
        .where(Load.id == load_id, Load.status.notin_(_statuses(NON_REASSIGNABLE)))
        .values(
            assigned_driver_id=driver.id,
            status=LoadStatus.PENDING.value,
            revision=Load.revision + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise InvalidState("Cannot reassign a load that is already accepted or completed")
    await db.commit()
    logger.info("Load %s assigned to driver %s", load.load_number, driver.id)

    load = await _reload(db, load_id)
    return await _notify_then_reload(
        db, load_id, dispatcher.notify_load_assigned(driver.id, load)
    )


# ── Driver operations ───────────────────────────────────────────────
def _ensure_assigned(load: Load, driver_id: str) -> None:
    if load.assigned_driver_id is None or load.assigned_driver_id != driver_id:
        raise Forbidden("This load is not assigned to you")


async def _transition(
    db: AsyncSession,
    identifier: str,
    driver: User,
    target: LoadStatus,
    refusal: str,
    allowed_from: Iterable[LoadStatus] | None = None,
    values: dict[str, Any] | Callable[[Load], dict[str, Any]] | None = None,
) -> Load:
    """Move a load assigned to *driver* to *target*.

    The UPDATE matches on status and ``revision`` as read, so a concurrent
    write makes it miss. On a miss the row is re-read and the checks run
    again against the fresh state.
    """
    load = await get_load_or_404(db, identifier)
    load_id, driver_id = load.id, driver.id
    allowed = list(allowed_from) if allowed_from is not None else sources_for(target)

    for _ in range(_TRANSITION_ATTEMPTS):
        _ensure_assigned(load, driver_id)
        previous = load.status
        if LoadStatus(previous) not in allowed:
            raise InvalidState(refusal.format(status=previous))

        extra = values(load) if callable(values) else (values or {})
        result = await db.execute(
            update(Load)
            .where(
                Load.id == load_id,
                Load.assigned_driver_id == driver_id,
                Load.status.in_(_statuses(allowed)),
                Load.revision == load.revision,
            )
            .values(status=target.value, revision=Load.revision + 1, **extra)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            await db.commit()
            logger.info(
                "Load %s moved %s -> %s by driver %s",
                load.load_number, previous, target.value, driver_id,
            )
            return await _reload(db, load_id)
        load = await _reload(db, load_id)

    raise InvalidState(refusal.format(status=load.status))


async def accept_load(
    db: AsyncSession, dispatcher: NotificationDispatcher, identifier: str, driver: User
) -> Load:
    load = await _transition(
        db, identifier, driver, LoadStatus.ACCEPTED, "Cannot accept a load with status '{status}'"
    )
    return await _notify_then_reload(
        db, load.id, dispatcher.notify_load_accepted(load, driver.name)
    )


async def decline_load(
    db: AsyncSession, dispatcher: NotificationDispatcher, identifier: str, driver: User
) -> Load:
    load = await _transition(
        db, identifier, driver, LoadStatus.REJECTED, "Cannot decline a load with status '{status}'"
    )
    return await _notify_then_reload(
        db, load.id, dispatcher.notify_load_rejected(load, driver.name)
    )


async def upload_proof_of_delivery(
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
    identifier: str,
    driver: User,
    image: str,
) -> Load:
    if not is_valid_image_reference(image):
        raise ValidationError("Invalid image format. Expected an image URL or base64 data image.")

    load = await _transition(
        db,
        identifier,
        driver,
        LoadStatus.COMPLETED,
        "Can only upload POD for accepted loads",
        values={"pod_image": image, "completed_at": datetime.now(timezone.utc)},
    )
    return await _notify_then_reload(
        db, load.id, dispatcher.notify_load_completed(load, driver.name)
    )


async def upload_documents(
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
    identifier: str,
    driver: User,
    invoices: list[str],
    documents: list[str],
) -> Load:
    invoices = [ref for ref in invoices if ref]
    documents = [ref for ref in documents if ref]
    if not invoices and not documents:
        raise ValidationError("Please provide at least one invoice or document")

    if settings.DOCUMENTS_REQUIRE_ACCEPTED:
        allowed = sources_for(LoadStatus.COMPLETED)
    else:
        allowed = list(LoadStatus)

    def _appended(current: Load) -> dict[str, Any]:
        return {
            "invoices": list(current.invoices or []) + invoices,
            "documents": list(current.documents or []) + documents,
            "completed_at": datetime.now(timezone.utc),
        }

    load = await _transition(
        db,
        identifier,
        driver,
        LoadStatus.COMPLETED,
        "Can only upload documents for accepted loads",
        allowed_from=allowed,
        values=_appended,
    )
    return await _notify_then_reload(
        db, load.id, dispatcher.notify_documents_uploaded(load, driver.name)
    )
