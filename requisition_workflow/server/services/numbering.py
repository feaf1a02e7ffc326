"""
Document Numbering.

Numbers look like ``REQ-25-00042``: a document prefix, the two-digit year,
and a five-digit sequence that restarts every year per organization. The
next value is the highest existing sequence plus one.

Catalog item codes (``ITEM-007``) follow the same rule without the year.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.repositories import CatalogItemRepository, RequisitionRepository

REQUISITION_PREFIX = "REQ"
PURCHASE_ORDER_PREFIX = "PO"
GOODS_RECEIPT_PREFIX = "GR"
SEQUENCE_WIDTH = 5
ITEM_CODE_PREFIX = "ITEM"
ITEM_CODE_WIDTH = 3


def year_prefix(document_prefix: str, year: Optional[int] = None) -> str:
    year = year if year is not None else utc_now().year
    return f"{document_prefix}-{year % 100:02d}-"


def next_number(document_prefix: str, current_max: Optional[str], year: Optional[int] = None) -> str:
    """
    Compute the number following ``current_max`` for the given year.

    Args:
        document_prefix: ``REQ``, ``PO`` or ``GR``
        current_max: Highest existing number with the same year prefix, if any
        year: Calendar year; defaults to the current UTC year

    Returns:
        The next formatted number
    """
    prefix = year_prefix(document_prefix, year)
    sequence = 0
    if current_max and current_max.startswith(prefix):
        suffix = current_max[len(prefix):]
        if suffix.isdigit():
            sequence = int(suffix)
    return f"{prefix}{sequence + 1:0{SEQUENCE_WIDTH}d}"


async def generate_requisition_number(session: AsyncSession, org_id: str) -> str:
    prefix = year_prefix(REQUISITION_PREFIX)
    current_max = await RequisitionRepository(session).max_number_with_prefix(org_id, prefix)
    return next_number(REQUISITION_PREFIX, current_max)


def next_item_code(existing_codes: Iterable[str]) -> str:
    prefix = f"{ITEM_CODE_PREFIX}-"
    sequences = [
        int(code[len(prefix):]) for code in existing_codes if code.startswith(prefix) and code[len(prefix):].isdigit()
    ]
    return f"{prefix}{max(sequences, default=0) + 1:0{ITEM_CODE_WIDTH}d}"


async def generate_item_code(session: AsyncSession, org_id: str) -> str:
    existing = await CatalogItemRepository(session).codes_with_prefix(org_id, f"{ITEM_CODE_PREFIX}-")
    return next_item_code(existing)
