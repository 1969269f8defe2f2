from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import InquiryStatus
from ..enrollments.model import CustomRates


@dataclass(frozen=True)
class Inquiry:
    inquiry_id: int
    organization_id: int
    child_name: str
    guardian_name: str
    guardian_phone: str
    status: InquiryStatus
    guardian_email: Optional[str] = None
    converted_child_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EnrollmentTerms:
    """Enrollment part of an inquiry conversion."""

    start_date: date
    end_date: Optional[date] = None
    rate_schedule_id: Optional[int] = None
    custom_rates: CustomRates = CustomRates()
    notes: Optional[str] = None
    collect_registration: bool = False
