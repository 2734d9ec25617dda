from __future__ import annotations

from flask import Flask

from ..common.http import json_endpoint, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activities/cleanup/daily", methods=["POST"], endpoint="run_daily_cleanup")
    @json_endpoint("Failed to run daily cleanup")
    def run_daily_cleanup():
        result = container.scheduler.run_daily_cleanup()
        return ok(
            result.to_dict(),
            f"Daily cleanup completed. Deleted {result.deleted_count} activity records",
            deletedCount=result.deleted_count,
        )

    @app.route("/api/activities/cleanup/weekly", methods=["POST"], endpoint="run_weekly_cleanup")
    @json_endpoint("Failed to run weekly cleanup")
    def run_weekly_cleanup():
        result = container.scheduler.run_weekly_cleanup()
        return ok(
            result.to_dict(),
            f"Weekly cleanup completed. Deleted {result.deleted_count} old activity records",
            deletedCount=result.deleted_count,
        )

    @app.route("/api/activities/scheduler/status", methods=["GET"], endpoint="scheduler_status")
    @json_endpoint("Failed to get scheduler status")
    def scheduler_status():
        return ok(container.scheduler.get_status())
