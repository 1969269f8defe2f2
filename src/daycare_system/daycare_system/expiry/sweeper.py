from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional

from ..children.repository import ChildRepository
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_EXPIRY_LOOKAHEAD_DAYS, DEFAULT_SWEEP_ITEM_TIMEOUT_SECONDS
from ..core.enums import NotificationPriority, NotificationType
from ..core.exceptions import AggregationError
from ..enrollments.model import Enrollment
from ..enrollments.repository import EnrollmentRepository
from ..enrollments.service import EnrollmentLifecycle
from ..notifications.model import NotificationEvent, dedup_key
from ..notifications.outbox import NotificationOutbox

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expiring_count: int = 0
    expired_count: int = 0
    notifications_emitted: int = 0
    failed_count: int = 0
    errors: list[AggregationError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "expiring_count": self.expiring_count,
            "expired_count": self.expired_count,
            "notifications_emitted": self.notifications_emitted,
            "failed_count": self.failed_count,
            "errors": [str(e) for e in self.errors],
        }


class ExpirySweeper:
    """Daily job: warn about enrollments ending soon and expire the ones that ended.

    Safe to run more than once a day; notifications are deduplicated per
    (type, enrollment, sweep date) by the outbox and already expired
    enrollments are no longer selected.
    """

    def __init__(
        self,
        enrollments: EnrollmentRepository,
        lifecycle: EnrollmentLifecycle,
        children: ChildRepository,
        outbox: NotificationOutbox,
        *,
        lookahead_days: int = DEFAULT_EXPIRY_LOOKAHEAD_DAYS,
        item_timeout_seconds: float = DEFAULT_SWEEP_ITEM_TIMEOUT_SECONDS,
    ):
        self._enrollments = enrollments
        self._lifecycle = lifecycle
        self._children = children
        self._outbox = outbox
        self._lookahead_days = int(lookahead_days)
        self._item_timeout = float(item_timeout_seconds)

    def _child_name(self, enrollment: Enrollment) -> str:
        child = self._children.get_by_id(organization_id=enrollment.organization_id, child_id=enrollment.child_id)
        return child.child_name if child else f"Child #{enrollment.child_id}"

    def _run_item(self, enrollment: Enrollment, work: Callable[[], bool], result: SweepResult) -> bool:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="expiry-sweep")
        try:
            future = executor.submit(work)
            emitted = future.result(timeout=self._item_timeout)
        except FutureTimeoutError:
            error = AggregationError(enrollment.enrollment_id, f"timed out after {self._item_timeout:g}s")
        except Exception as exc:
            error = AggregationError(enrollment.enrollment_id, str(exc))
        else:
            if emitted:
                result.notifications_emitted += 1
            return True
        finally:
            executor.shutdown(wait=False)

        result.failed_count += 1
        result.errors.append(error)
        logger.error("Expiry sweep failed for enrollment %s: %s", enrollment.enrollment_number, error)
        return False

    def _warn_expiring(self, enrollment: Enrollment, today: date) -> bool:
        name = self._child_name(enrollment)
        return self._outbox.publish(
            NotificationEvent(
                organization_id=enrollment.organization_id,
                type=NotificationType.ENROLLMENT_EXPIRING,
                title="Enrollment expiring soon",
                message=f"{name}'s enrollment {enrollment.enrollment_number} ends on "
                f"{enrollment.end_date.isoformat()}. Please renew.",
                priority=NotificationPriority.MEDIUM,
                target_entity_id=enrollment.enrollment_id,
                dedup_key=dedup_key(NotificationType.ENROLLMENT_EXPIRING, enrollment.enrollment_id, today),
            )
        )

    def _expire(self, enrollment: Enrollment, today: date) -> bool:
        # The enrollment stays active until its event is stored; same-day reruns hit the dedup key.
        name = self._child_name(enrollment)
        emitted = self._outbox.publish(
            NotificationEvent(
                organization_id=enrollment.organization_id,
                type=NotificationType.ENROLLMENT_EXPIRED,
                title="Enrollment expired",
                message=f"{name}'s enrollment {enrollment.enrollment_number} expired on "
                f"{enrollment.end_date.isoformat()}.",
                priority=NotificationPriority.HIGH,
                target_entity_id=enrollment.enrollment_id,
                dedup_key=dedup_key(NotificationType.ENROLLMENT_EXPIRED, enrollment.enrollment_id, today),
            )
        )
        self._lifecycle.expire(
            organization_id=enrollment.organization_id, enrollment_id=enrollment.enrollment_id, today=today
        )
        return emitted

    def run(self, *, organization_id: int, today: Optional[date] = None) -> SweepResult:
        today = today or now_local().date()
        organization_id = int(organization_id)
        result = SweepResult()

        expiring = self._enrollments.list_active_ending_between(
            organization_id=organization_id,
            after=today,
            until=today + timedelta(days=self._lookahead_days),
        )
        for enrollment in expiring:
            if self._run_item(enrollment, lambda e=enrollment: self._warn_expiring(e, today), result):
                result.expiring_count += 1

        ended = self._enrollments.list_active_ended_by(organization_id=organization_id, day=today)
        for enrollment in ended:
            if self._run_item(enrollment, lambda e=enrollment: self._expire(e, today), result):
                result.expired_count += 1

        logger.info(
            "Expiry sweep org=%s date=%s: expiring=%s expired=%s notifications=%s failed=%s",
            organization_id,
            today,
            result.expiring_count,
            result.expired_count,
            result.notifications_emitted,
            result.failed_count,
        )
        return result
