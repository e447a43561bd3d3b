"""
Spreadsheet export of shipments.

Pure transformation: a list of shipments in, XLSX bytes out.
"""

import enum
from datetime import date, datetime
from io import BytesIO
from typing import Iterable, Optional

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from backend.app.models.shipment import Shipment

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, attribute, width); movement date must stay first
EXPORT_COLUMNS = [
    ("Movement Date", "movement_date", 15),
    ("Reference Number", "reference_number", 20),
    ("Process Type", "process_type", 12),
    ("Freight Type", "freight_type", 12),
    ("Status", "status", 20),
    ("Client Name", "client_name", 25),
    ("Clearance Company", "clearance_company", 20),
    ("Customs Agent", "customs_agent", 20),
    ("Permit Number", "permit_number", 18),
    ("Customs Permit Number", "customs_permit_number", 20),
    ("Invoice Number", "invoice_number", 18),
    ("Container Leak Status", "container_leak_status", 15),
    ("Goods Description", "goods_description", 30),
    ("Container Size", "container_size", 12),
    ("Container Number", "container_number", 18),
    ("Container Weight (t)", "container_weight", 15),
    ("Shipping Line", "shipping_line", 14),
    ("Bill of Lading", "bill_of_lading_number", 20),
    ("Driver Name", "driver_name", 20),
    ("Driver Phone", "driver_phone", 15),
    ("Tractor Number", "tractor_number", 15),
    ("Trailer Number", "trailer_number", 15),
    ("Delivery Location", "delivery_location", 25),
    ("Loading Location", "loading_location", 25),
    ("Unloading Date", "unloading_date", 15),
    ("Delivery Date", "delivery_date", 15),
    ("Warehouse Manager", "warehouse_manager", 20),
    ("Warehouse Manager Phone", "warehouse_manager_phone", 18),
    ("Warehouse Working Hours", "warehouse_working_hours", 25),
    ("Notes", "notes", 35),
    ("Created At", "created_at", 18),
]

HEADER_FILL = PatternFill(start_color="0EA5E9", end_color="0EA5E9", fill_type="solid")
STRIPE_FILL = PatternFill(start_color="F0F9FF", end_color="F0F9FF", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF", size=12)
THIN_SIDE = Side(style="thin", color="E5E7EB")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)


def format_date(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else ""


def cell_value(shipment: Shipment, attribute: str):
    """Spreadsheet value of one shipment attribute."""
    value = getattr(shipment, attribute)
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def build_shipments_workbook(shipments: Iterable[Shipment]) -> bytes:
    """
    Render shipments as an XLSX document.

    One styled header row, one row per shipment, a blank row and a final
    ``Total shipments: N`` line in the first column.
    """
    shipments = list(shipments)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Shipments"

    for col, (header, _, width) in enumerate(EXPORT_COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center")
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.row_dimensions[1].height = 25

    for row, shipment in enumerate(shipments, 2):
        for col, (_, attribute, _) in enumerate(EXPORT_COLUMNS, 1):
            value = cell_value(shipment, attribute)
            cell = ws.cell(row=row, column=col, value=value)
            if isinstance(value, str):
                # Stored text is never a formula, even when it starts with "="
                cell.data_type = "s"
            cell.border = THIN_BORDER
            cell.alignment = Alignment(vertical="center")
            if row % 2 == 0:
                cell.fill = STRIPE_FILL

    summary_row = len(shipments) + 3
    summary = ws.cell(row=summary_row, column=1, value=f"Total shipments: {len(shipments)}")
    summary.font = Font(bold=True, size=12)

    ws.freeze_panes = "A2"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"shipments_{today.isoformat()}.xlsx"
