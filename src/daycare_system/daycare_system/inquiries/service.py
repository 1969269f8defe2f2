from __future__ import annotations

import logging

from ..children.model import NewChild
from ..children.service import ChildService
from ..core.constants import SYSTEM_ACTOR_ID
from ..core.enums import InquiryStatus
from ..core.exceptions import ConflictError, NotFoundError
from ..enrollments.model import Enrollment
from ..enrollments.service import EnrollmentLifecycle
from ..reports.cache import AggregateCache
from .model import EnrollmentTerms
from .repository import InquiryRepository

logger = logging.getLogger(__name__)


class IntakeService:
    """Turns a lead into a child plus an active enrollment."""

    def __init__(
        self,
        inquiries: InquiryRepository,
        children: ChildService,
        lifecycle: EnrollmentLifecycle,
        *,
        cache: AggregateCache | None = None,
    ):
        self._inquiries = inquiries
        self._children = children
        self._lifecycle = lifecycle
        self._cache = cache

    def convert_to_enrollment(
        self,
        *,
        organization_id: int,
        inquiry_id: int,
        child_data: NewChild,
        enrollment_data: EnrollmentTerms,
        actor: int = SYSTEM_ACTOR_ID,
    ) -> Enrollment:
        inquiry = self._inquiries.get_by_id(organization_id=int(organization_id), inquiry_id=int(inquiry_id))
        if not inquiry:
            raise NotFoundError("Inquiry not found")
        if inquiry.status in (InquiryStatus.ENROLLED, InquiryStatus.LOST):
            raise ConflictError(f"Inquiry is already {inquiry.status.value}")

        child = self._children.create_child(organization_id=organization_id, data=child_data)
        try:
            enrollment = self._lifecycle.create_enrollment(
                organization_id=organization_id,
                child_id=child.child_id,
                start_date=enrollment_data.start_date,
                end_date=enrollment_data.end_date,
                rate_schedule_id=enrollment_data.rate_schedule_id,
                custom_rates=enrollment_data.custom_rates,
                notes=enrollment_data.notes,
                actor=actor,
                collect_registration=enrollment_data.collect_registration,
            )
        except Exception:
            try:
                self._children.tombstone_child(organization_id=organization_id, child_id=child.child_id)
            except ConflictError:
                logger.warning("Kept child %s: its enrollment was created before the failure", child.child_id)
            raise

        if not self._inquiries.mark_converted(
            organization_id=int(organization_id), inquiry_id=int(inquiry_id), child_id=child.child_id
        ):
            logger.warning("Inquiry %s changed status during conversion", inquiry_id)
        if self._cache:
            self._cache.invalidate(int(organization_id))
        logger.info("Inquiry %s converted to enrollment %s", inquiry_id, enrollment.enrollment_number)
        return enrollment
