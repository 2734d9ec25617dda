from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import (
    CleanupTimeoutError,
    ConflictError,
    DomainError,
    NotFoundError,
    PartialWriteError,
    TransientStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (CleanupTimeoutError, 504),
    (TransientStoreError, 503),
    (PartialWriteError, 503),
)


def ok(data: Any = None, message: Optional[str] = None, status: int = 200, **extra: Any):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def status_for(exc: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def json_endpoint(failure_message: str):
    """Translate domain errors into JSON responses; unexpected errors become a logged 500."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                return fail(str(e), status_for(e))
            except Exception:
                logger.exception("%s (%s %s)", failure_message, request.method, request.path)
                return fail(failure_message, 500)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
