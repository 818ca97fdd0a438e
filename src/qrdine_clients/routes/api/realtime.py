"""
Change feed endpoints: polling and Server-Sent Events.

Customers may follow ``menu`` and ``orders:table:<id>``; a signed-in staff
member may follow every topic.
"""

from __future__ import annotations

import json
import time
from http import HTTPStatus

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from qrdine_shared.logging_config import get_logger
from qrdine_shared.realtime import can_read_topic, latest_event_id, read_events
from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.session_context import get_staff_context

logger = get_logger(__name__)

realtime_bp = Blueprint("client_realtime", __name__)


def _read_after_id() -> int:
    raw = request.args.get("after_id") or request.headers.get("Last-Event-ID") or "0"
    try:
        return max(int(raw), 0)
    except ValueError:
        return 0


def _authorized_topic() -> tuple[str | None, tuple | None]:
    topic = (request.args.get("topic") or "").strip()
    if not topic:
        return None, (jsonify(error_response("Thiếu tham số topic")), HTTPStatus.BAD_REQUEST)
    if not can_read_topic(topic, get_staff_context().is_authenticated):
        return None, (jsonify(error_response("Không có quyền theo dõi kênh này")), HTTPStatus.FORBIDDEN)
    return topic, None


@realtime_bp.get("/realtime/events")
def poll_events():
    """
    Committed events on ``topic`` after ``after_id``, oldest first.

    ``cursor`` is the id to send as ``after_id`` next time.
    """
    topic, failure = _authorized_topic()
    if failure:
        return failure

    after_id = _read_after_id()
    events = read_events(topic, after_id, request.args.get("limit", type=int))
    cursor = events[-1]["id"] if events else max(after_id, 0)
    return jsonify(success_response({"topic": topic, "events": events, "cursor": cursor})), HTTPStatus.OK


@realtime_bp.get("/realtime/stream")
def stream_events():
    """
    Server-Sent Events stream for one topic.

    Without ``after_id`` (or ``Last-Event-ID``) the stream starts at the
    newest event. The stream closes after ``REALTIME_STREAM_SECONDS`` and the
    browser reconnects from its last event id.
    """
    topic, failure = _authorized_topic()
    if failure:
        return failure

    has_cursor = "after_id" in request.args or "Last-Event-ID" in request.headers
    after_id = _read_after_id() if has_cursor else latest_event_id(topic)
    poll_interval = current_app.config.get("REALTIME_POLL_SECONDS", 1.0)
    lifetime = current_app.config.get("REALTIME_STREAM_SECONDS", 300)

    def generate():
        last_id = after_id
        deadline = time.monotonic() + lifetime
        yield f"retry: {int(poll_interval * 1000)}\n\n"

        while True:
            events = read_events(topic, last_id)
            for event in events:
                last_id = event["id"]
                yield f"id: {last_id}\nevent: change\ndata: {json.dumps(event, ensure_ascii=False)}\n\n"
            if not events:
                yield ": keepalive\n\n"
            if time.monotonic() >= deadline:
                break
            time.sleep(poll_interval)

    logger.debug(f"Opening realtime stream for {topic} after {after_id}")
    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable buffering for Nginx
        },
    )
