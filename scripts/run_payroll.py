"""Create payroll records for every active employee of one month.

Usage: python scripts/run_payroll.py MONTH YEAR
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_system.hr_system.container import build_container

logger = logging.getLogger("run_payroll")


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        raise SystemExit(__doc__)

    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    report = container.payroll_batch_runner.run_for_all_employees(int(argv[0]), int(argv[1]))

    for outcome in report.errors:
        logger.warning("employee %s: %s", outcome.employee_id, outcome.error)
    logger.info("created=%s errors=%s", report.created_count, report.error_count)
    return 0 if not report.errors else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
