"""
Role-based access control tests.

Covers the permission table itself and its enforcement on every guarded
endpoint.
"""

import pytest

from backend.app.core.guards import (
    Operation,
    ROLE_PERMISSIONS,
    is_allowed,
    can_set_status,
    parse_role,
)
from backend.app.core.jwt import create_access_token
from backend.app.models.enums import UserRole, ShipmentStatus


def test_permission_table_is_total():
    for role in UserRole:
        assert role in ROLE_PERMISSIONS
        for operation in Operation:
            assert isinstance(is_allowed(role, operation), bool)


@pytest.mark.parametrize("role,operation,expected", [
    (UserRole.MANAGER, Operation.MANAGE_USERS, True),
    (UserRole.MANAGER, Operation.DELETE_SHIPMENT, True),
    (UserRole.OPERATOR, Operation.CREATE_SHIPMENT, True),
    (UserRole.OPERATOR, Operation.UPDATE_SHIPMENT, True),
    (UserRole.OPERATOR, Operation.DELETE_SHIPMENT, True),
    (UserRole.OPERATOR, Operation.EXPORT_SHIPMENTS, True),
    (UserRole.OPERATOR, Operation.MANAGE_USERS, False),
    (UserRole.ACCOUNTANT, Operation.VIEW_SHIPMENTS, True),
    (UserRole.ACCOUNTANT, Operation.EXPORT_SHIPMENTS, True),
    (UserRole.ACCOUNTANT, Operation.CREATE_SHIPMENT, False),
    (UserRole.ACCOUNTANT, Operation.UPDATE_SHIPMENT, False),
    (UserRole.ACCOUNTANT, Operation.DELETE_SHIPMENT, False),
    (UserRole.ACCOUNTANT, Operation.MANAGE_USERS, False),
])
def test_is_allowed(role, operation, expected):
    assert is_allowed(role, operation) is expected


@pytest.mark.parametrize("role,target,expected", [
    (UserRole.OPERATOR, ShipmentStatus.IN_PROGRESS, True),
    (UserRole.OPERATOR, ShipmentStatus.READY_FOR_ACCOUNTANT, True),
    (UserRole.OPERATOR, ShipmentStatus.CLOSED, False),
    (UserRole.ACCOUNTANT, ShipmentStatus.IN_PROGRESS, False),
    (UserRole.ACCOUNTANT, ShipmentStatus.CLOSED, True),
    (UserRole.MANAGER, ShipmentStatus.CLOSED, True),
    (UserRole.MANAGER, ShipmentStatus.OPEN, False),
])
def test_can_set_status(role, target, expected):
    assert can_set_status(role, target) is expected


def test_parse_role():
    assert parse_role("accountant") is UserRole.ACCOUNTANT
    assert parse_role("admin") is None
    assert parse_role(None) is None


@pytest.mark.asyncio
async def test_accountant_cannot_write_shipments(client, accountant_headers, shipment_payload):
    create = await client.post("/api/shipments", headers=accountant_headers, json=shipment_payload)
    update = await client.put("/api/shipments/1", headers=accountant_headers, json=shipment_payload)
    delete = await client.delete("/api/shipments/1", headers=accountant_headers)

    assert create.status_code == 403
    assert update.status_code == 403
    assert delete.status_code == 403
    assert create.json()["error_code"] == "ERR_FORBIDDEN"


@pytest.mark.asyncio
async def test_accountant_can_read_and_export(client, accountant_headers):
    listing = await client.get("/api/shipments", headers=accountant_headers)
    export = await client.get("/api/export/xlsx", headers=accountant_headers)

    assert listing.status_code == 200
    assert export.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("method,path", [
    ("GET", "/api/shipments"),
    ("GET", "/api/shipments/1"),
    ("POST", "/api/shipments"),
    ("PUT", "/api/shipments/1"),
    ("DELETE", "/api/shipments/1"),
    ("PATCH", "/api/shipments/1/status"),
    ("GET", "/api/shipments/suggestions/search?field=client_name&query=a"),
    ("GET", "/api/export/xlsx"),
    ("GET", "/api/auth/users"),
])
async def test_guarded_endpoints_require_token(client, method, path):
    response = await client.request(method, path, json={})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_unknown_role_in_token_is_403(client):
    token = create_access_token(data={"sub": "7", "user_id": 7, "role": "admin"})
    response = await client.get("/api/shipments", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json()["message"] == "Invalid role in token"
