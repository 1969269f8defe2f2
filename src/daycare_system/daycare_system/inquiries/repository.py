from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import InquiryStatus
from .model import Inquiry


class InquiryRepository(Protocol):
    def get_by_id(self, *, organization_id: int, inquiry_id: int) -> Optional[Inquiry]:
        raise NotImplementedError

    def count_all(self, *, organization_id: int) -> int:
        raise NotImplementedError

    def count_by_status(self, *, organization_id: int, status: InquiryStatus) -> int:
        raise NotImplementedError

    def mark_converted(self, *, organization_id: int, inquiry_id: int, child_id: int) -> bool:
        """Set status=enrolled unless already enrolled or lost."""

        raise NotImplementedError
