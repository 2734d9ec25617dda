from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from .activity.mysql_activity_repository import MySQLActivityFeedRepository
from .activity.policy import EvictionPolicy
from .activity.service import ActivityFeedService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.service import AuditLogService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import transaction
from .scheduler.service import EvictionScheduler
from .scheduler.triggers import DailyTrigger, WeeklyTrigger
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService
from .sync.broadcaster import SyncBroadcaster
from .transitions.service import TransitionService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    students_repo: MySQLStudentRepository
    audit_repo: MySQLAuditLogRepository
    feed_repo: MySQLActivityFeedRepository

    policy: EvictionPolicy
    broadcaster: SyncBroadcaster
    student_service: StudentService
    audit_service: AuditLogService
    activity_service: ActivityFeedService
    transition_service: TransitionService
    scheduler: EvictionScheduler


def build_container(*, db_config: dict, settings: ModuleType | None = None) -> Container:
    def setting(name: str, default):
        return getattr(settings, name, default) if settings is not None else default

    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    students_repo = MySQLStudentRepository(conn)
    audit_repo = MySQLAuditLogRepository(conn)
    feed_repo = MySQLActivityFeedRepository(conn)

    policy = EvictionPolicy(
        retention_hours=int(setting("FEED_RETENTION_HOURS", 24)),
        weekly_multiplier=int(setting("WEEKLY_RETENTION_MULTIPLIER", 7)),
    )
    broadcaster = SyncBroadcaster(poll_interval=int(setting("SYNC_POLL_INTERVAL_SECONDS", 5)))

    student_service = StudentService(students_repo, audit=audit_repo, broadcaster=broadcaster)
    audit_service = AuditLogService(audit_repo, default_retention_days=int(setting("AUDIT_RETENTION_DAYS", 30)))
    activity_service = ActivityFeedService(feed_repo, policy=policy, broadcaster=broadcaster)
    transition_service = TransitionService(
        students_repo,
        audit_repo,
        feed_repo,
        policy=policy,
        broadcaster=broadcaster,
        atomic=lambda: transaction(conn),
        max_retries=int(setting("TOGGLE_MAX_RETRIES", 3)),
    )
    scheduler = EvictionScheduler(
        feed_repo,
        policy=policy,
        daily_trigger=DailyTrigger.parse(setting("DAILY_CLEANUP_AT", "00:00")),
        weekly_trigger=WeeklyTrigger.parse(setting("WEEKLY_CLEANUP_AT", "SUN 02:00")),
        timezone=str(setting("SCHEDULER_TIMEZONE", "Asia/Kolkata")),
        broadcaster=broadcaster,
        manual_timeout=float(setting("MANUAL_CLEANUP_TIMEOUT_SECONDS", 30.0)),
    )

    return Container(
        conn=conn,
        students_repo=students_repo,
        audit_repo=audit_repo,
        feed_repo=feed_repo,
        policy=policy,
        broadcaster=broadcaster,
        student_service=student_service,
        audit_service=audit_service,
        activity_service=activity_service,
        transition_service=transition_service,
        scheduler=scheduler,
    )
