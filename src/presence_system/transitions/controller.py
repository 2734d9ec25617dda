from __future__ import annotations

import logging

from flask import Flask, request

from ..common.http import fail, json_body, json_endpoint, ok
from ..container import Container
from ..core.exceptions import PartialWriteError
from ..scanning.decoder import decode_student_id

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _toggle(student_id: str):
        try:
            result = container.transition_service.toggle(student_id)
        except PartialWriteError as e:
            if e.student is None:
                return fail("Scan not recorded, please scan again", 503)
            # Presence changed; only the history write is missing.
            verb = "checked in" if e.student.status.value == "in" else "checked out"
            return ok(
                {"student": e.student.to_dict(), "logEntry": None, "activity": None},
                f"Student {verb} successfully",
                warning=str(e),
            )
        return ok(result.to_dict(), result.message)

    @app.route("/api/students/<student_id>/toggle", methods=["PATCH", "POST"], endpoint="toggle_student")
    @json_endpoint("Failed to update student status")
    def toggle_student(student_id: str):
        return _toggle(student_id)

    @app.route("/api/scan", methods=["POST"], endpoint="scan_barcode")
    @json_endpoint("Failed to process scan")
    def scan_barcode():
        barcode = str(json_body().get("barcode", "")).strip()
        if not barcode:
            return fail("Barcode is required", 400)
        return _toggle(barcode)

    @app.route("/api/scan/image", methods=["POST"], endpoint="scan_barcode_image")
    @json_endpoint("Failed to process scan")
    def scan_barcode_image():
        if "image" not in request.files:
            return fail("No image file provided", 400)
        student_id = decode_student_id(request.files["image"].stream)
        logger.debug("Decoded barcode %s from uploaded image", student_id)
        return _toggle(student_id)
