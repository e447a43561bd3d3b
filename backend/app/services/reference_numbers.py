"""
Reference number generation for shipments.

Format: ``<FREIGHT_CODE>-<MOVEMENT_CODE>-<YEAR>-<SEQUENCE>``, e.g.
``SEA-EXP-2025-0001``. The sequence is scoped to (freight code, process
type, year) and derived from the largest number already issued in that
scope; there is no counter table.

Reading the maximum and inserting are separate statements, so two
concurrent creations in the same scope can compute the same number. The
unique constraint on ``shipments.reference_number`` turns that into an
IntegrityError, which the shipment store retries with backoff.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.models.enums import ProcessType, MOVEMENT_CODES
from backend.app.models.shipment import Shipment

SEQUENCE_WIDTH = 4


def current_year() -> int:
    """Calendar year on the server clock."""
    return datetime.now().year


def normalize_freight_code(freight_type: Optional[str]) -> str:
    """Upper-case freight code, falling back to the truck code when absent."""
    if freight_type and freight_type.strip():
        return freight_type.strip().upper()
    return settings.default_freight_code


def reference_prefix(freight_code: str, process_type: ProcessType, year: int) -> str:
    """Common prefix of every reference number in a scope, trailing dash included."""
    return f"{freight_code}-{MOVEMENT_CODES[process_type]}-{year}-"


def format_reference_number(freight_code: str, process_type: ProcessType, year: int, sequence: int) -> str:
    """
    Assemble a reference number.

    Sequences are zero-padded to four digits; from 10000 on the suffix
    simply grows wider.
    """
    return f"{reference_prefix(freight_code, process_type, year)}{sequence:0{SEQUENCE_WIDTH}d}"


async def find_max_sequence(db: AsyncSession, prefix: str) -> int:
    """
    Largest sequence already issued under ``prefix`` (0 when none).

    The numeric suffix is cast to an integer in SQL so that widened
    sequences still compare numerically.
    """
    suffix = func.substr(Shipment.reference_number, len(prefix) + 1)
    result = await db.execute(
        select(func.max(cast(suffix, Integer))).where(
            Shipment.reference_number.startswith(prefix, autoescape=True)
        )
    )
    return result.scalar() or 0


async def generate_reference_number(
    db: AsyncSession,
    freight_code: str,
    process_type: ProcessType,
    year: Optional[int] = None,
) -> str:
    """
    Next reference number for the (freight code, process type, year) scope.

    Args:
        db: Database session
        freight_code: Normalized freight code
        process_type: Resolved process type
        year: Calendar year; defaults to the current server year

    Returns:
        Reference number one past the current maximum in the scope
    """
    if year is None:
        year = current_year()

    prefix = reference_prefix(freight_code, process_type, year)
    next_sequence = await find_max_sequence(db, prefix) + 1

    return format_reference_number(freight_code, process_type, year, next_sequence)
