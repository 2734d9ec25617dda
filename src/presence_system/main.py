from __future__ import annotations

import atexit
import importlib
import logging
import os
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from .activity.controller import register as register_activity
from .audit.controller import register as register_audit
from .common.http import ok
from .config import get_settings_module
from .container import Container, build_container
from .core.log_config import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, database_clock_skew, list_tables
from .scheduler.controller import register as register_scheduler
from .students.controller import register as register_students
from .sync.controller import register as register_sync
from .transitions.controller import register as register_transitions

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"
MAX_CLOCK_SKEW_SECONDS = 60


def _prepare_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        skew = database_clock_skew(db_config)
        if abs(skew) > MAX_CLOCK_SKEW_SECONDS:
            logger.warning(
                "MySQL NOW() differs from the app clock by %.0fs; the activity TTL event will expire rows early or late",
                skew,
            )
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        logger.info("Demo seed ready")


def _start_background(settings, container: Container) -> None:
    if bool(getattr(settings, "RECONCILE_ON_STARTUP", False)):
        repaired = container.transition_service.reconcile()
        logger.info("Startup reconcile repaired %s presence records", repaired)

    if bool(getattr(settings, "SCHEDULER_ENABLED", False)):
        container.scheduler.start_all()

        def _shutdown() -> None:
            container.scheduler.shutdown()
            container.broadcaster.close()

        atexit.register(_shutdown)


def create_app(container: Container | None = None, *, settings_module: str | None = None) -> Flask:
    load_dotenv(override=False)
    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _prepare_database(settings, db_config)
        container = build_container(db_config=db_config, settings=settings)
        _start_background(settings, container)

    app.extensions["presence_container"] = container

    register_students(app, container)
    register_transitions(app, container)
    register_activity(app, container)
    register_scheduler(app, container)
    register_audit(app, container)
    register_sync(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "OK", "sync": container.broadcaster.snapshot().to_dict()})

    return app


def main() -> None:
    # SIGTERM -> SystemExit so atexit handlers stop the scheduler cleanly.
    signal.signal(signal.SIGTERM, lambda signum, frame: sys.exit(0))
    app = create_app()
    port = int(os.getenv("PORT", "5000"))
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=port, threaded=True, use_reloader=False)


if __name__ == "__main__":
    main()
