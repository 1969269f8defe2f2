from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceLedger
from .billing.calculator.tiered_calculator import TieredBillingCalculator
from .billing.resolver import RateResolver
from .children.mysql_child_repository import MySQLChildRepository
from .children.service import ChildService
from .codes.generator import CodeGenerator
from .codes.mysql_code_sequence_repository import MySQLCodeSequenceRepository
from .common.locks import KeyedLock
from .core.constants import DEFAULT_EXPIRY_LOOKAHEAD_DAYS, DEFAULT_SWEEP_ITEM_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .enrollments.mysql_enrollment_repository import MySQLEnrollmentRepository
from .enrollments.service import EnrollmentLifecycle
from .expiry.sweeper import ExpirySweeper
from .inquiries.mysql_inquiry_repository import MySQLInquiryRepository
from .inquiries.service import IntakeService
from .notifications.mysql_notification_outbox import MySQLNotificationOutbox
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.service import PaymentRecorder
from .rates.mysql_rate_repository import MySQLRateScheduleRepository
from .rates.service import RateScheduleService
from .reports.cache import AggregateCache
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.service import RevenueAggregator


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    default_organization_id: int

    rates_repo: MySQLRateScheduleRepository
    children_repo: MySQLChildRepository
    enrollments_repo: MySQLEnrollmentRepository
    attendance_repo: MySQLAttendanceRepository
    payments_repo: MySQLPaymentRepository
    inquiries_repo: MySQLInquiryRepository
    outbox: MySQLNotificationOutbox

    rate_service: RateScheduleService
    child_service: ChildService
    payment_recorder: PaymentRecorder
    attendance_ledger: AttendanceLedger
    enrollment_lifecycle: EnrollmentLifecycle
    intake_service: IntakeService
    expiry_sweeper: ExpirySweeper
    revenue_aggregator: RevenueAggregator


def build_container(
    *,
    db_config: dict,
    default_organization_id: int = 1,
    expiry_lookahead_days: int = DEFAULT_EXPIRY_LOOKAHEAD_DAYS,
    sweep_item_timeout_seconds: float = DEFAULT_SWEEP_ITEM_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    rates_repo = MySQLRateScheduleRepository(conn)
    children_repo = MySQLChildRepository(conn)
    enrollments_repo = MySQLEnrollmentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    payments_repo = MySQLPaymentRepository(conn)
    inquiries_repo = MySQLInquiryRepository(conn)
    outbox = MySQLNotificationOutbox(conn)

    codes = CodeGenerator(MySQLCodeSequenceRepository(conn))
    resolver = RateResolver(rates_repo)
    cache = AggregateCache()
    locks = KeyedLock()

    payment_recorder = PaymentRecorder(payments_repo, children_repo, codes, cache=cache, resolver=resolver)
    attendance_ledger = AttendanceLedger(
        attendance_repo,
        enrollments_repo,
        resolver,
        calculator=TieredBillingCalculator(),
        payments=payment_recorder,
        cache=cache,
        locks=locks,
        children=children_repo,
    )
    enrollment_lifecycle = EnrollmentLifecycle(
        enrollments_repo,
        children_repo,
        rates_repo,
        codes,
        locks=locks,
        session_closer=attendance_ledger,
        registration_biller=payment_recorder,
        cache=cache,
    )
    child_service = ChildService(children_repo, codes, enrollments=enrollments_repo, locks=locks, cache=cache)

    return Container(
        conn=conn,
        default_organization_id=int(default_organization_id),
        rates_repo=rates_repo,
        children_repo=children_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
        payments_repo=payments_repo,
        inquiries_repo=inquiries_repo,
        outbox=outbox,
        rate_service=RateScheduleService(rates_repo),
        child_service=child_service,
        payment_recorder=payment_recorder,
        attendance_ledger=attendance_ledger,
        enrollment_lifecycle=enrollment_lifecycle,
        intake_service=IntakeService(inquiries_repo, child_service, enrollment_lifecycle, cache=cache),
        expiry_sweeper=ExpirySweeper(
            enrollments_repo,
            enrollment_lifecycle,
            children_repo,
            outbox,
            lookahead_days=expiry_lookahead_days,
            item_timeout_seconds=sweep_item_timeout_seconds,
        ),
        revenue_aggregator=RevenueAggregator(
            MySQLReportRepository(conn), inquiries_repo, payment_recorder, cache=cache
        ),
    )
