"""Run the enrollment expiry sweep once.

Meant for cron, daily at 09:00:

    0 9 * * * cd /srv/daycare && APP_ENV=production python scripts/run_expiry_sweep.py
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.daycare_system.daycare_system.common.datetime_utils import parse_iso_date
from src.daycare_system.daycare_system.common.logging_config import setup_logging
from src.daycare_system.daycare_system.container import build_container


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())

    parser = argparse.ArgumentParser(description="Warn about and expire ending enrollments.")
    parser.add_argument("--organization-id", type=int, default=settings.DEFAULT_ORGANIZATION_ID)
    parser.add_argument("--date", type=parse_iso_date, default=None, help="sweep date (YYYY-MM-DD), default today")
    args = parser.parse_args(argv)

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FORMAT", "text"))
    container = build_container(
        db_config=settings.DB_CONFIG,
        default_organization_id=settings.DEFAULT_ORGANIZATION_ID,
        expiry_lookahead_days=settings.EXPIRY_LOOKAHEAD_DAYS,
        sweep_item_timeout_seconds=settings.SWEEP_ITEM_TIMEOUT_SECONDS,
    )
    result = container.expiry_sweeper.run(organization_id=args.organization_id, today=args.date)
    print(result.to_dict())
    return 1 if result.failed_count else 0


if __name__ == "__main__":
    sys.exit(main())
