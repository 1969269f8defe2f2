from __future__ import annotations

from datetime import date
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.constants import (
    CHILD_CODE_PREFIX,
    CODE_SEQUENCE_WIDTH,
    ENROLLMENT_NUMBER_PREFIX,
    PAYMENT_NUMBER_PREFIX,
    RECEIPT_NUMBER_PREFIX,
)
from .repository import CodeSequenceRepository


class CodeGenerator:
    """Human-readable codes: PREFIX + YEAR + zero-padded sequence (e.g. DC20260007)."""

    def __init__(self, sequences: CodeSequenceRepository):
        self._sequences = sequences

    def next_code(self, *, organization_id: int, prefix: str, on: Optional[date] = None) -> str:
        year = (on or now_local().date()).year
        value = self._sequences.next_value(organization_id=int(organization_id), prefix=prefix, year=year)
        return f"{prefix}{year}{value:0{CODE_SEQUENCE_WIDTH}d}"

    def child_code(self, *, organization_id: int) -> str:
        return self.next_code(organization_id=organization_id, prefix=CHILD_CODE_PREFIX)

    def enrollment_number(self, *, organization_id: int) -> str:
        return self.next_code(organization_id=organization_id, prefix=ENROLLMENT_NUMBER_PREFIX)

    def payment_number(self, *, organization_id: int) -> str:
        return self.next_code(organization_id=organization_id, prefix=PAYMENT_NUMBER_PREFIX)

    def receipt_number(self, *, organization_id: int) -> str:
        return self.next_code(organization_id=organization_id, prefix=RECEIPT_NUMBER_PREFIX)
