from __future__ import annotations

from flask import Flask, send_file

from ..common.http import json_body, json_endpoint, ok
from ..container import Container
from ..scanning.badges import render_badge_png


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students", methods=["POST"], endpoint="create_student")
    @json_endpoint("Failed to create student")
    def create_student():
        data = json_body()
        student = container.student_service.register(
            student_id=data.get("student_id", ""),
            name=data.get("name", ""),
            department=data.get("department", ""),
            email=data.get("email"),
            phone=data.get("phone"),
            semester=data.get("semester"),
            image_url=data.get("image_url") or data.get("imageUrl"),
        )
        return ok({"student": student.to_dict()}, "Student created successfully", 201)

    @app.route("/api/students", methods=["GET"], endpoint="list_students")
    @json_endpoint("Failed to fetch students")
    def list_students():
        students = container.student_service.list_all()
        return ok({"students": [s.to_dict() for s in students], "count": len(students)})

    @app.route("/api/students/counts", methods=["GET"], endpoint="student_counts")
    @json_endpoint("Failed to fetch presence counts")
    def student_counts():
        return ok(container.student_service.presence_counts().to_dict())

    @app.route("/api/students/status/<status>", methods=["GET"], endpoint="students_by_status")
    @json_endpoint("Failed to fetch students")
    def students_by_status(status: str):
        students = container.student_service.list_by_status(status)
        return ok({"students": [s.to_dict() for s in students], "count": len(students), "status": status.lower()})

    @app.route("/api/students/<student_id>", methods=["GET"], endpoint="get_student")
    @json_endpoint("Failed to fetch student")
    def get_student(student_id: str):
        return ok({"student": container.student_service.get(student_id).to_dict()})

    @app.route("/api/students/<student_id>/badge.png", methods=["GET"], endpoint="student_badge")
    @json_endpoint("Failed to render badge")
    def student_badge(student_id: str):
        student = container.student_service.get(student_id)
        return send_file(render_badge_png(student.student_id), mimetype="image/png")
