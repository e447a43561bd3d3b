"""
Enumerations for users and shipments.

Defines the closed value sets stored in the database and accepted by the API.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        MANAGER: Full access, including user management
        OPERATOR: Creates and edits shipments (default role)
        ACCOUNTANT: Read-only dashboard and export, closes shipments
    """
    MANAGER = "manager"
    OPERATOR = "operator"
    ACCOUNTANT = "accountant"


class ProcessType(str, enum.Enum):
    """Canonical shipment direction. Fixed at creation."""
    IMPORT = "import"
    EXPORT = "export"


# Localized labels of the legacy movement_type field
MOVEMENT_TYPE_LABELS = {
    ProcessType.IMPORT: "استيراد",
    ProcessType.EXPORT: "تصدير",
}

# Short codes used inside reference numbers
MOVEMENT_CODES = {
    ProcessType.IMPORT: "IMP",
    ProcessType.EXPORT: "EXP",
}


class ContainerSize(str, enum.Enum):
    """Standard ISO container sizes offered by the entry form."""
    DRY_20 = "20dry"
    DRY_40 = "40dry"
    HIGH_CUBE_DRY_40 = "40hcdry"
    REEFER_20 = "20reefer"
    REEFER_40 = "40reefer"
    OPEN_TOP_20 = "opentop20"
    OPEN_TOP_40 = "opentop40"
    FLAT_RACK_20 = "flatrack20"
    FLAT_RACK_40 = "flatrack40"
    TANK_20 = "tank20"


class ContainerLeakStatus(str, enum.Enum):
    """Container leak inspection result; OTHER carries free text."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    OTHER = "other"


class ShipmentStatus(str, enum.Enum):
    """
    Shipment workflow status.

    Status flow (one step at a time, never backwards):
        OPEN → IN_PROGRESS → READY_FOR_ACCOUNTANT → CLOSED
    """
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    READY_FOR_ACCOUNTANT = "ready_for_accountant"
    CLOSED = "closed"


SHIPMENT_STATUS_FLOW = [
    ShipmentStatus.OPEN,
    ShipmentStatus.IN_PROGRESS,
    ShipmentStatus.READY_FOR_ACCOUNTANT,
    ShipmentStatus.CLOSED,
]


class SuggestionField(str, enum.Enum):
    """Shipment fields that support autocomplete suggestions."""
    CLIENT_NAME = "client_name"
    CONTAINER_NUMBER = "container_number"
    BILL_OF_LADING_NUMBER = "bill_of_lading_number"
    GOODS_DESCRIPTION = "goods_description"
    DRIVER_NAME = "driver_name"
    PERMIT_NUMBER = "permit_number"
