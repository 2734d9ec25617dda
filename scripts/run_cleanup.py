"""Run one activity-feed cleanup job by hand, outside the web process.

Usage: python scripts/run_cleanup.py daily|weekly|reconcile
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from dotenv import load_dotenv

from presence_system.config import get_settings_module
from presence_system.container import build_container
from presence_system.core.log_config import configure_logging


def main(argv: list[str]) -> None:
    if len(argv) != 1 or argv[0] not in ("daily", "weekly", "reconcile"):
        raise SystemExit("usage: run_cleanup.py daily|weekly|reconcile")

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)

    try:
        if argv[0] == "reconcile":
            repaired = container.transition_service.reconcile()
            print(f"OK: reconciled {repaired} students")
            return
        if argv[0] == "daily":
            result = container.scheduler.run_daily_cleanup()
        else:
            result = container.scheduler.run_weekly_cleanup()
        print(f"OK: {result.job} deleted {result.deleted_count} activities")
    finally:
        container.scheduler.shutdown()


if __name__ == "__main__":
    main(sys.argv[1:])
