from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, json_endpoint, ok
from ..container import Container
from ..core.constants import DEFAULT_RECENT_ACTIVITY_LIMIT


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activities", methods=["POST"], endpoint="add_activity")
    @json_endpoint("Failed to record activity")
    def add_activity():
        data = json_body()
        activity = container.transition_service.add_activity(
            data.get("student_id", ""),
            data.get("student") or {},
            data.get("action"),
        )
        return ok(activity.to_dict(), "Activity recorded successfully", 201)

    @app.route("/api/activities/recent", methods=["GET"], endpoint="recent_activities")
    @json_endpoint("Failed to fetch recent activities")
    def recent_activities():
        limit = request.args.get("limit", DEFAULT_RECENT_ACTIVITY_LIMIT)
        activities = container.activity_service.list_recent(limit)
        return ok([a.to_dict() for a in activities], count=len(activities))

    @app.route("/api/activities/stats", methods=["GET"], endpoint="activity_stats")
    @json_endpoint("Failed to fetch activity statistics")
    def activity_stats():
        return ok(container.activity_service.stats().to_dict())

    @app.route("/api/activities/clear-old", methods=["DELETE"], endpoint="clear_old_activities")
    @json_endpoint("Failed to clear old activities")
    def clear_old_activities():
        hours = json_body().get("hours", request.args.get("hours"))
        if hours in (None, ""):
            hours = container.policy.retention_hours
        deleted = container.activity_service.clear_older_than(hours)
        return ok(
            message=f"Cleared {deleted} activities older than {int(hours)} hours",
            deletedCount=deleted,
        )

    @app.route("/api/activities/clear-all", methods=["DELETE"], endpoint="clear_all_activities")
    @json_endpoint("Failed to clear all activities")
    def clear_all_activities():
        deleted = container.activity_service.clear_all()
        return ok(message=f"Cleared all activities. Deleted {deleted} records", deletedCount=deleted)
