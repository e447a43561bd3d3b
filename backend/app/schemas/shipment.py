"""
Shipment Pydantic schemas.

Defines request and response models for shipment management. Format rules
that the entry form enforces are re-checked here so the API never stores a
malformed container number, shipping line or phone number.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, date
from typing import Any, List, Literal, Optional, Union
from backend.app.models.enums import (
    ProcessType,
    ContainerSize,
    ContainerLeakStatus,
    ShipmentStatus,
    MOVEMENT_TYPE_LABELS,
)

PHONE_PATTERN = r"^[0-9]{10}$"


class WorkingSchedule(BaseModel):
    """Structured warehouse working hours as sent by the entry form."""
    type: Literal["preset", "custom"]
    preset: Optional[Literal["sun-thu", "sat-wed", "custom"]] = None
    days: Optional[List[str]] = Field(None, min_length=2, max_length=2)
    start_time: Optional[str] = Field(None, pattern=r"^[0-2][0-9]:[0-5][0-9]$")
    end_time: Optional[str] = Field(None, pattern=r"^[0-2][0-9]:[0-5][0-9]$")


class ShipmentPayload(BaseModel):
    """
    Schema for creating or fully replacing a shipment.

    ``process_type`` may be omitted in favour of the legacy localized
    ``movement_type``. Neither is allowed to change an existing shipment.
    """
    movement_date: Optional[date] = None
    movement_type: Optional[str] = Field(None, max_length=100, description="Legacy localized process type")
    process_type: Optional[ProcessType] = None
    freight_type: Optional[str] = Field(None, pattern=r"^[A-Za-z]{1,10}$", description="Freight code, e.g. TRK, SEA, AIR")

    client_name: Optional[str] = Field(None, max_length=255)
    clearance_company: Optional[str] = Field(None, max_length=255)
    customs_agent: Optional[str] = Field(None, max_length=255)
    permit_number: Optional[str] = Field(None, max_length=100)
    customs_permit_number: Optional[str] = Field(None, max_length=100)
    invoice_number: Optional[str] = Field(None, max_length=100)

    container_number: Optional[str] = Field(None, pattern=r"^[A-Z]{4}[0-9]{7}$", description="4 letters + 7 digits")
    container_size: Optional[ContainerSize] = None
    container_weight: Optional[float] = Field(None, ge=2, description="Tons, minimum 2")
    container_leak_status: Optional[ContainerLeakStatus] = None
    container_leak_custom: Optional[str] = Field(None, max_length=255)

    shipping_line: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$", description="3 uppercase letters")
    bill_of_lading_number: Optional[str] = Field(None, max_length=100)
    goods_description: Optional[str] = None

    driver_name: Optional[str] = Field(None, max_length=255)
    driver_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    tractor_number: Optional[str] = Field(None, max_length=50)
    trailer_number: Optional[str] = Field(None, max_length=50)

    delivery_location: Optional[str] = Field(None, max_length=255)
    loading_location: Optional[str] = Field(None, max_length=255)
    unloading_date: Optional[date] = None
    delivery_date: Optional[date] = None
    warehouse_manager: Optional[str] = Field(None, max_length=255)
    warehouse_manager_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    warehouse_working_hours: Optional[Union[WorkingSchedule, str]] = None

    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        # The form submits untouched inputs as ""
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data

    @field_validator("container_number", "shipping_line", mode="before")
    @classmethod
    def upper_code(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def resolved_process_type(self) -> Optional[ProcessType]:
        """
        Process type requested by this payload, if any.

        An explicit ``process_type`` wins; otherwise the legacy
        ``movement_type`` means export only when it equals the localized
        export label.
        """
        if self.process_type is not None:
            return self.process_type
        if self.movement_type is not None:
            if self.movement_type.strip() == MOVEMENT_TYPE_LABELS[ProcessType.EXPORT]:
                return ProcessType.EXPORT
            return ProcessType.IMPORT
        return None

    def working_hours_text(self) -> Optional[str]:
        """Working hours as stored: free text as-is, schedules as JSON."""
        if isinstance(self.warehouse_working_hours, WorkingSchedule):
            return self.warehouse_working_hours.model_dump_json(exclude_none=True)
        return self.warehouse_working_hours


class ShipmentStatusChange(BaseModel):
    """Schema for PATCH /shipments/{id}/status."""
    status: ShipmentStatus


class ShipmentResponse(BaseModel):
    """Schema for shipment response."""
    id: int
    user_id: Optional[int]
    reference_number: str
    movement_date: Optional[date]
    movement_type: str
    process_type: ProcessType
    freight_type: str
    status: ShipmentStatus

    client_name: Optional[str]
    clearance_company: Optional[str]
    customs_agent: Optional[str]
    permit_number: Optional[str]
    customs_permit_number: Optional[str]
    invoice_number: Optional[str]

    container_number: Optional[str]
    container_size: Optional[ContainerSize]
    container_weight: Optional[float]
    container_leak_status: Optional[ContainerLeakStatus]
    container_leak_custom: Optional[str]

    shipping_line: Optional[str]
    bill_of_lading_number: Optional[str]
    goods_description: Optional[str]

    driver_name: Optional[str]
    driver_phone: Optional[str]
    tractor_number: Optional[str]
    trailer_number: Optional[str]

    delivery_location: Optional[str]
    loading_location: Optional[str]
    unloading_date: Optional[date]
    delivery_date: Optional[date]
    warehouse_manager: Optional[str]
    warehouse_manager_phone: Optional[str]
    warehouse_working_hours: Optional[str]

    notes: Optional[str]

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ShipmentDeleteResponse(BaseModel):
    """Schema for DELETE /shipments/{id}; the key name is kept for existing clients."""
    message: str
    deleted_shipment: ShipmentResponse = Field(..., serialization_alias="deletedShipment")


class ShipmentFilters(BaseModel):
    """Optional filters shared by the dashboard listing and the export."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    process_type: Optional[ProcessType] = None
    client_name: Optional[str] = None
    status: Optional[ShipmentStatus] = None
