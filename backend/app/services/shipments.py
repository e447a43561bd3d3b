"""
Shipment record store.

Owns the create/read/update/delete lifecycle of shipments, the status
workflow and autocomplete suggestions. Functions take the request's
``AsyncSession`` and raise ``AppException`` subclasses; the API layer only
translates HTTP to calls.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ConflictError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.core.guards import can_set_status
from backend.app.core.reliability import run_with_retry
from backend.app.models.enums import (
    ProcessType,
    ShipmentStatus,
    SuggestionField,
    UserRole,
    SHIPMENT_STATUS_FLOW,
)
from backend.app.models.shipment import Shipment
from backend.app.schemas.shipment import ShipmentFilters, ShipmentPayload
from backend.app.services.reference_numbers import generate_reference_number, normalize_freight_code

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 10

# Closed mapping from suggestion field to column; nothing user-supplied
# ever names a column.
SUGGESTION_COLUMNS = {
    SuggestionField.CLIENT_NAME: Shipment.client_name,
    SuggestionField.CONTAINER_NUMBER: Shipment.container_number,
    SuggestionField.BILL_OF_LADING_NUMBER: Shipment.bill_of_lading_number,
    SuggestionField.GOODS_DESCRIPTION: Shipment.goods_description,
    SuggestionField.DRIVER_NAME: Shipment.driver_name,
    SuggestionField.PERMIT_NUMBER: Shipment.permit_number,
}

# Business fields replaced wholesale by an update
MUTABLE_FIELDS = (
    "movement_date",
    "client_name",
    "clearance_company",
    "customs_agent",
    "permit_number",
    "customs_permit_number",
    "invoice_number",
    "container_number",
    "container_size",
    "container_weight",
    "container_leak_status",
    "container_leak_custom",
    "shipping_line",
    "bill_of_lading_number",
    "goods_description",
    "driver_name",
    "driver_phone",
    "tractor_number",
    "trailer_number",
    "delivery_location",
    "loading_location",
    "unloading_date",
    "delivery_date",
    "warehouse_manager",
    "warehouse_manager_phone",
    "notes",
)


REFERENCE_CONSTRAINT = "uq_shipments_reference_number"


def is_reference_collision(exc: BaseException) -> bool:
    """
    Whether an IntegrityError comes from the reference number constraint.

    PostgreSQL names the constraint; SQLite names the column.
    """
    message = str(getattr(exc, "orig", exc))
    return REFERENCE_CONSTRAINT in message or "shipments.reference_number" in message


def _check_locations(payload: ShipmentPayload, process_type: ProcessType) -> None:
    """Imports are delivered somewhere, exports are loaded somewhere; never both."""
    if process_type == ProcessType.IMPORT and payload.loading_location is not None:
        raise ValidationFailedError(
            "Import shipments take a delivery location, not a loading location",
            details={"field": "loading_location"}
        )
    if process_type == ProcessType.EXPORT and payload.delivery_location is not None:
        raise ValidationFailedError(
            "Export shipments take a loading location, not a delivery location",
            details={"field": "delivery_location"}
        )


def _apply_payload(shipment: Shipment, payload: ShipmentPayload) -> None:
    for field in MUTABLE_FIELDS:
        setattr(shipment, field, getattr(payload, field))
    shipment.freight_type = normalize_freight_code(payload.freight_type)
    shipment.warehouse_working_hours = payload.working_hours_text()


async def create_shipment(db: AsyncSession, payload: ShipmentPayload, user_id: Optional[int]) -> Shipment:
    """
    Create a shipment and assign its reference number.

    The process type comes from ``process_type`` or the legacy
    ``movement_type`` and defaults to import. Reference generation and the
    insert are retried together when another request claims the same
    number first.

    Raises:
        ValidationFailedError: Location fields do not match the process type
        ConflictError: No free reference number within the retry budget
    """
    process_type = payload.resolved_process_type() or ProcessType.IMPORT
    freight_code = normalize_freight_code(payload.freight_type)
    _check_locations(payload, process_type)

    async def insert() -> Shipment:
        reference_number = await generate_reference_number(db, freight_code, process_type)
        shipment = Shipment(
            user_id=user_id,
            reference_number=reference_number,
            process_type=process_type,
            status=ShipmentStatus.OPEN,
        )
        _apply_payload(shipment, payload)
        db.add(shipment)
        await db.commit()
        await db.refresh(shipment)
        return shipment

    try:
        shipment = await run_with_retry(
            insert,
            rollback=db.rollback,
            attempts=settings.reference_retry_attempts,
            backoff_base=settings.reference_retry_backoff_seconds,
            should_retry=is_reference_collision,
        )
    except IntegrityError as exc:
        if not is_reference_collision(exc):
            raise
        logger.error(
            "Could not allocate a reference number for %s/%s after %d attempts",
            freight_code, process_type.value, settings.reference_retry_attempts
        )
        raise ConflictError(
            "Could not allocate a unique reference number, please retry",
            details={"freight_type": freight_code, "process_type": process_type.value}
        )

    logger.info("Shipment %s created (id=%s, user=%s)", shipment.reference_number, shipment.id, user_id)
    return shipment


async def get_shipment(db: AsyncSession, shipment_id: int) -> Shipment:
    """Fetch a shipment by id or raise ResourceNotFoundError."""
    result = await db.execute(select(Shipment).where(Shipment.id == shipment_id))
    shipment = result.scalar_one_or_none()

    if not shipment:
        raise ResourceNotFoundError("Shipment", shipment_id)

    return shipment


def _filtered_query(filters: Optional[ShipmentFilters]):
    query = select(Shipment)
    if filters is None:
        return query

    # Date bounds apply to the movement date, not created_at
    if filters.start_date:
        query = query.where(Shipment.movement_date >= filters.start_date)
    if filters.end_date:
        query = query.where(Shipment.movement_date <= filters.end_date)
    if filters.process_type:
        query = query.where(Shipment.process_type == filters.process_type)
    if filters.client_name:
        query = query.where(
            func.lower(Shipment.client_name).contains(filters.client_name.lower(), autoescape=True)
        )
    if filters.status:
        query = query.where(Shipment.status == filters.status)
    return query


async def list_shipments(db: AsyncSession, filters: Optional[ShipmentFilters] = None) -> List[Shipment]:
    """All matching shipments, newest first."""
    query = _filtered_query(filters).order_by(Shipment.created_at.desc(), Shipment.id.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_shipments_for_export(db: AsyncSession, filters: Optional[ShipmentFilters] = None) -> List[Shipment]:
    """Matching shipments ordered by movement date, latest first."""
    query = _filtered_query(filters).order_by(
        Shipment.movement_date.desc(),
        Shipment.created_at.desc(),
        Shipment.id.desc()
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_shipment(db: AsyncSession, shipment_id: int, payload: ShipmentPayload) -> Shipment:
    """
    Replace the mutable fields of a shipment.

    ``reference_number``, ``process_type``, ``status`` and ownership are
    kept. A payload asking for a different process type is rejected
    without touching the row.

    Raises:
        ResourceNotFoundError: Unknown id
        ValidationFailedError: Process type change or location mismatch
    """
    shipment = await get_shipment(db, shipment_id)

    requested = payload.resolved_process_type()
    if requested is not None and requested != shipment.process_type:
        logger.warning(
            "Rejected process_type change on shipment %s (%s -> %s)",
            shipment.reference_number, shipment.process_type.value, requested.value
        )
        raise ValidationFailedError(
            "Changing process_type is not allowed",
            details={"current": shipment.process_type.value, "requested": requested.value}
        )

    _check_locations(payload, shipment.process_type)
    _apply_payload(shipment, payload)
    shipment.updated_at = func.now()

    await db.commit()
    await db.refresh(shipment)

    logger.info("Shipment %s updated (id=%s)", shipment.reference_number, shipment.id)
    return shipment


async def delete_shipment(db: AsyncSession, shipment_id: int) -> Shipment:
    """Delete a shipment and return its last state. No soft delete."""
    shipment = await get_shipment(db, shipment_id)

    await db.delete(shipment)
    await db.commit()

    logger.info("Shipment %s deleted (id=%s)", shipment.reference_number, shipment_id)
    return shipment


async def change_status(db: AsyncSession, shipment_id: int, target: ShipmentStatus, role: UserRole) -> Shipment:
    """
    Advance a shipment one step along the status flow.

    Raises:
        ResourceNotFoundError: Unknown id
        ValidationFailedError: Target is not the immediate next status
        InsufficientPermissionsError: Role may not move shipments into ``target``
    """
    shipment = await get_shipment(db, shipment_id)

    position = SHIPMENT_STATUS_FLOW.index(shipment.status)
    next_status = SHIPMENT_STATUS_FLOW[position + 1] if position + 1 < len(SHIPMENT_STATUS_FLOW) else None

    if target != next_status:
        raise ValidationFailedError(
            f"Cannot move shipment from {shipment.status.value} to {target.value}",
            details={
                "current": shipment.status.value,
                "allowed": next_status.value if next_status else None,
            }
        )

    if not can_set_status(role, target):
        raise InsufficientPermissionsError(
            f"Role {role.value} cannot move shipments to {target.value}"
        )

    shipment.status = target
    shipment.updated_at = func.now()
    await db.commit()
    await db.refresh(shipment)

    logger.info("Shipment %s moved to %s", shipment.reference_number, target.value)
    return shipment


async def suggest_values(db: AsyncSession, field: SuggestionField, query: str) -> List[str]:
    """
    Up to ten distinct earlier values of ``field`` containing ``query``.

    Matching is case-insensitive; empty and null values are skipped and the
    result is sorted ascending.
    """
    column = SUGGESTION_COLUMNS[field]
    stmt = (
        select(column)
        .where(
            column.is_not(None),
            column != "",
            func.lower(column).contains(query.lower(), autoescape=True),
        )
        .distinct()
        .order_by(column)
        .limit(SUGGESTION_LIMIT)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
