"""
Shipment API endpoints.

CRUD over shipments, the status workflow and autocomplete suggestions.
Reads are open to every role; writes are gated per operation.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import Operation, require_permission, parse_role
from backend.app.models.enums import ProcessType, ShipmentStatus, SuggestionField
from backend.app.schemas.shipment import (
    ShipmentPayload,
    ShipmentResponse,
    ShipmentStatusChange,
    ShipmentDeleteResponse,
    ShipmentFilters,
)
from backend.app.services import shipments as shipment_store

router = APIRouter(prefix="/shipments", tags=["Shipments"])


def shipment_filters(
    start_date: Optional[date] = Query(None, alias="startDate", description="Movement date lower bound (inclusive)"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Movement date upper bound (inclusive)"),
    movement_type: Optional[str] = Query(None, alias="movementType", pattern="^(import|export|all)$"),
    client_name: Optional[str] = Query(None, alias="clientName", max_length=255),
    shipment_status: Optional[ShipmentStatus] = Query(None, alias="status"),
) -> ShipmentFilters:
    """Query-string filters shared by the listing and the export."""
    process_type = None
    if movement_type and movement_type != "all":
        process_type = ProcessType(movement_type)

    return ShipmentFilters(
        start_date=start_date,
        end_date=end_date,
        process_type=process_type,
        client_name=client_name or None,
        status=shipment_status,
    )


@router.get("/suggestions/search", response_model=List[str])
async def search_suggestions(
    field: SuggestionField = Query(..., description="Field to autocomplete"),
    query: str = Query(..., min_length=1, max_length=255, description="Partial value"),
    current_user: dict = Depends(require_permission(Operation.VIEW_SHIPMENTS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Autocomplete from earlier shipments.

    ``field`` must be one of the allow-listed suggestion fields; anything
    else is rejected with 400 before a query is built.
    """
    return await shipment_store.suggest_values(db, field, query)


@router.get("", response_model=List[ShipmentResponse])
async def list_shipments(
    filters: ShipmentFilters = Depends(shipment_filters),
    current_user: dict = Depends(require_permission(Operation.VIEW_SHIPMENTS)),
    db: AsyncSession = Depends(get_db)
):
    """List shipments, newest first, optionally filtered."""
    shipments = await shipment_store.list_shipments(db, filters)
    return [ShipmentResponse.model_validate(s) for s in shipments]


@router.get("/{shipment_id}", response_model=ShipmentResponse)
async def get_shipment(
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(require_permission(Operation.VIEW_SHIPMENTS)),
    db: AsyncSession = Depends(get_db)
):
    """Get a single shipment."""
    shipment = await shipment_store.get_shipment(db, shipment_id)
    return ShipmentResponse.model_validate(shipment)


@router.post("", response_model=ShipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    payload: ShipmentPayload,
    current_user: dict = Depends(require_permission(Operation.CREATE_SHIPMENT)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a shipment (manager, operator).

    The server assigns id, reference number, status and timestamps.
    """
    shipment = await shipment_store.create_shipment(db, payload, current_user.get("user_id"))
    return ShipmentResponse.model_validate(shipment)


@router.put("/{shipment_id}", response_model=ShipmentResponse)
async def update_shipment(
    payload: ShipmentPayload,
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(require_permission(Operation.UPDATE_SHIPMENT)),
    db: AsyncSession = Depends(get_db)
):
    """
    Replace a shipment's business fields (manager, operator).

    Sending a different process type is rejected with 400.
    """
    shipment = await shipment_store.update_shipment(db, shipment_id, payload)
    return ShipmentResponse.model_validate(shipment)


@router.patch("/{shipment_id}/status", response_model=ShipmentResponse)
async def change_shipment_status(
    change: ShipmentStatusChange,
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(require_permission(Operation.CHANGE_SHIPMENT_STATUS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a shipment to the next workflow status.

    open → in_progress → ready_for_accountant → closed, one step at a time.
    """
    shipment = await shipment_store.change_status(
        db, shipment_id, change.status, parse_role(current_user.get("role"))
    )
    return ShipmentResponse.model_validate(shipment)


@router.delete("/{shipment_id}", response_model=ShipmentDeleteResponse)
async def delete_shipment(
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(require_permission(Operation.DELETE_SHIPMENT)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a shipment permanently (manager, operator)."""
    shipment = await shipment_store.delete_shipment(db, shipment_id)
    return ShipmentDeleteResponse(
        message="Shipment deleted successfully",
        deleted_shipment=ShipmentResponse.model_validate(shipment)
    )
