"""
Shipment database model.

One row per freight movement handled by the company. The reference number
is assigned once at creation and is unique across the table.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Enum, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import (
    ProcessType,
    ContainerSize,
    ContainerLeakStatus,
    ShipmentStatus,
    MOVEMENT_TYPE_LABELS,
)


def _enum(enum_cls, name):
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


class Shipment(Base):
    """
    Shipment model for the tracking dashboard.

    ``process_type`` and ``reference_number`` are write-once; the legacy
    localized ``movement_type`` is derived from ``process_type`` rather than
    stored.
    """
    __tablename__ = "shipments"
    __table_args__ = (
        UniqueConstraint("reference_number", name="uq_shipments_reference_number"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Identity & classification
    reference_number = Column(String(50), nullable=False, index=True)
    movement_date = Column(Date, nullable=True, index=True)
    process_type = Column(_enum(ProcessType, "process_type"), nullable=False, index=True)
    freight_type = Column(String(10), nullable=False)
    status = Column(
        _enum(ShipmentStatus, "shipment_status"),
        default=ShipmentStatus.OPEN,
        nullable=False,
        index=True
    )

    # Customs / client
    client_name = Column(String(255), nullable=True, index=True)
    clearance_company = Column(String(255), nullable=True)
    customs_agent = Column(String(255), nullable=True)
    permit_number = Column(String(100), nullable=True)
    customs_permit_number = Column(String(100), nullable=True)
    invoice_number = Column(String(100), nullable=True)

    # Container
    container_number = Column(String(11), nullable=True)
    container_size = Column(_enum(ContainerSize, "container_size"), nullable=True)
    container_weight = Column(Float, nullable=True)
    container_leak_status = Column(_enum(ContainerLeakStatus, "container_leak_status"), nullable=True)
    container_leak_custom = Column(String(255), nullable=True)

    # Shipping
    shipping_line = Column(String(3), nullable=True)
    bill_of_lading_number = Column(String(100), nullable=True)
    goods_description = Column(Text, nullable=True)

    # Transport
    driver_name = Column(String(255), nullable=True)
    driver_phone = Column(String(10), nullable=True)
    tractor_number = Column(String(50), nullable=True)
    trailer_number = Column(String(50), nullable=True)

    # Logistics
    delivery_location = Column(String(255), nullable=True)
    loading_location = Column(String(255), nullable=True)
    unloading_date = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    warehouse_manager = Column(String(255), nullable=True)
    warehouse_manager_phone = Column(String(10), nullable=True)
    warehouse_working_hours = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def movement_type(self) -> str:
        """Localized display label of the process type."""
        return MOVEMENT_TYPE_LABELS[self.process_type]

    def __repr__(self):
        return f"<Shipment(id={self.id}, ref='{self.reference_number}', process_type='{self.process_type.value}')>"
