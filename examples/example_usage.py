"""Example: driving the service layer directly, without Flask.

Controllers are thin; every rule lives in the services wired by the container.
"""

import importlib

from config import get_settings_module

from src.daycare_system.daycare_system.common.logging_config import setup_logging
from src.daycare_system.daycare_system.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    container = build_container(db_config=settings.DB_CONFIG)
    org = settings.DEFAULT_ORGANIZATION_ID

    print(container.revenue_aggregator.stats_snapshot(organization_id=org).to_dict())
    for record in container.attendance_ledger.currently_checked_in(organization_id=org):
        print(f"enrollment {record.enrollment_id} checked in at {record.check_in_time:%H:%M}")


if __name__ == "__main__":
    main()
