from __future__ import annotations

from flask import Flask, Response, request, stream_with_context

from ..common.http import json_endpoint, ok
from ..common.validators import require_int_in_range
from ..container import Container

MAX_WAIT_SECONDS = 30


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sync/version", methods=["GET"], endpoint="sync_version")
    @json_endpoint("Failed to read sync state")
    def sync_version():
        return ok(container.broadcaster.snapshot().to_dict())

    @app.route("/api/sync/wait", methods=["GET"], endpoint="sync_wait")
    @json_endpoint("Failed to wait for changes")
    def sync_wait():
        since = require_int_in_range(request.args.get("since", 0), "since", minimum=0, maximum=2**62)
        timeout = require_int_in_range(request.args.get("timeout", 25), "timeout", minimum=0, maximum=MAX_WAIT_SECONDS)
        signal = container.broadcaster.wait_for_change(since, timeout)
        return ok(signal.to_dict(), changed=signal.version > since)

    @app.route("/api/sync/stream", methods=["GET"], endpoint="sync_stream")
    def sync_stream():
        since = request.args.get("since", type=int)
        return Response(
            stream_with_context(container.broadcaster.stream(since)),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )
