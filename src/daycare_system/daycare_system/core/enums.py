from __future__ import annotations

from enum import Enum


class ChildLifecycle(str, Enum):
    """Tombstoned children stay in the store so history keeps resolving."""

    ACTIVE = "active"
    TOMBSTONED = "tombstoned"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (EnrollmentStatus.CANCELLED, EnrollmentStatus.EXPIRED)


class BillingType(str, Enum):
    """Tier chosen for a closed attendance session."""

    HOURLY = "hourly"
    HALF_DAY = "half-day"
    FULL_DAY = "full-day"


class BillingPolicy(str, Enum):
    PAY_PER_SESSION = "pay_per_session"
    SUBSCRIPTION = "subscription"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentType(str, Enum):
    SESSION = "session"
    MONTHLY = "monthly"
    REGISTRATION = "registration"
    OTHER = "other"


class InquiryStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    ENROLLED = "enrolled"
    LOST = "lost"


class NotificationType(str, Enum):
    ENROLLMENT_EXPIRING = "enrollment_expiring"
    ENROLLMENT_EXPIRED = "enrollment_expired"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
