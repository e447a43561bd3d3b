"""
API Router.

Aggregates all API endpoints under the configured prefix.
"""

from fastapi import APIRouter
from backend.app.api.endpoints import auth, shipments, export

router = APIRouter()

# Authentication & user management
router.include_router(auth.router)

# Shipment records
router.include_router(shipments.router)

# Spreadsheet export
router.include_router(export.router)
