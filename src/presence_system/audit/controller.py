from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, json_endpoint, ok
from ..container import Container
from ..core.constants import DEFAULT_LOG_PAGE_LIMIT, DEFAULT_RECENT_LOG_HOURS, DEFAULT_STUDENT_LOG_LIMIT


def register(app: Flask, container: Container) -> None:
    @app.route("/api/logs", methods=["GET"], endpoint="list_logs")
    @json_endpoint("Failed to fetch logs")
    def list_logs():
        limit = request.args.get("limit", DEFAULT_LOG_PAGE_LIMIT)
        offset = request.args.get("offset", 0)
        logs = container.audit_service.list_logs(limit=limit, offset=offset)
        return ok(
            {
                "logs": [e.to_dict() for e in logs],
                "count": len(logs),
                "pagination": {"limit": int(limit), "offset": int(offset)},
            }
        )

    @app.route("/api/logs/recent", methods=["GET"], endpoint="recent_logs")
    @json_endpoint("Failed to fetch recent logs")
    def recent_logs():
        hours = request.args.get("hours", DEFAULT_RECENT_LOG_HOURS)
        logs = container.audit_service.recent(hours=hours)
        return ok({"logs": [e.to_dict() for e in logs], "count": len(logs), "timeframe": f"{int(hours)} hours"})

    @app.route("/api/logs/stats/today", methods=["GET"], endpoint="today_log_stats")
    @json_endpoint("Failed to fetch statistics")
    def today_log_stats():
        return ok({"stats": container.audit_service.today_stats().to_dict()})

    @app.route("/api/logs/stats/departments", methods=["GET"], endpoint="department_log_stats")
    @json_endpoint("Failed to fetch department statistics")
    def department_log_stats():
        stats = container.audit_service.department_stats(
            start=request.args.get("start", ""),
            end=request.args.get("end", ""),
        )
        return ok({"departments": [s.to_dict() for s in stats]})

    @app.route("/api/logs/stats/<day>", methods=["GET"], endpoint="log_stats_by_date")
    @json_endpoint("Failed to fetch statistics")
    def log_stats_by_date(day: str):
        return ok({"stats": container.audit_service.stats_for_date(day).to_dict()})

    @app.route("/api/logs/student/<student_id>", methods=["GET"], endpoint="student_logs")
    @json_endpoint("Failed to fetch student logs")
    def student_logs(student_id: str):
        limit = request.args.get("limit", DEFAULT_STUDENT_LOG_LIMIT)
        logs = container.audit_service.logs_for_student(student_id, limit=limit)
        return ok({"logs": [e.to_dict() for e in logs], "count": len(logs), "studentId": student_id.upper()})

    @app.route("/api/logs/cleanup", methods=["DELETE"], endpoint="clear_old_logs")
    @json_endpoint("Failed to clear old logs")
    def clear_old_logs():
        days = json_body().get("days", request.args.get("days"))
        deleted = container.audit_service.purge_older_than(days=days)
        return ok({"deletedCount": deleted}, "Cleared old logs")
