"""
Export API endpoints.

Downloads the (filtered) shipment list as a spreadsheet.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import Operation, require_permission
from backend.app.schemas.shipment import ShipmentFilters
from backend.app.services import shipments as shipment_store
from backend.app.services.export import build_shipments_workbook, export_filename, XLSX_MEDIA_TYPE
from backend.app.api.endpoints.shipments import shipment_filters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/export", tags=["Export"])


@router.get("/xlsx")
async def export_xlsx(
    filters: ShipmentFilters = Depends(shipment_filters),
    current_user: dict = Depends(require_permission(Operation.EXPORT_SHIPMENTS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Download shipments as XLSX.

    Filters: ``startDate``/``endDate`` against the movement date,
    ``movementType`` (import, export, all), ``clientName`` substring and
    ``status``.
    """
    shipments = await shipment_store.list_shipments_for_export(db, filters)
    content = build_shipments_workbook(shipments)
    filename = export_filename()

    logger.info(
        "User %s exported %d shipments (%s)",
        current_user.get("user_id"), len(shipments), filters.model_dump(exclude_none=True)
    )

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
