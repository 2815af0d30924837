"""Application entry point for the Slack command bridge."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from flask import Flask, jsonify, request
from sqlalchemy import text
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from slack_command_bridge.actions import load_action_definitions
from slack_command_bridge.authorization import Unauthorized, authorize
from slack_command_bridge.background import run_async
from slack_command_bridge.db import session_scope
from slack_command_bridge.errors import ActionDefinitionError, MalformedPayloadError
from slack_command_bridge.logging_config import configure_logging
from slack_command_bridge.messages import (
    build_payload_error_message,
    build_verification_failure_message,
)
from slack_command_bridge.pipeline import handle_decision
from slack_command_bridge.requests import InboundRequest
from slack_command_bridge.runtime import AppRuntime, get_runtime


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        trace_id = str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _handle_slack_request(runtime: AppRuntime, inbound: InboundRequest):
    """Verify and authorize *inbound*, then hand it to the background pool."""

    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)
    try:
        log.info("slack_request_received", content_type=inbound.content_type)
        runtime.ensure_initialized()

        try:
            decision = authorize(
                inbound,
                signing_secret=runtime.credentials.signing_secret,
                channel_policy=runtime.channel_policy,
                store=runtime.permission_store,
                tolerance=runtime.settings.request_tolerance_seconds,
            )
        except MalformedPayloadError as exc:
            log.warning("invalid_payload", error=str(exc))
            return jsonify(build_payload_error_message()), 200

        if isinstance(decision, Unauthorized) and decision.reason.is_verification_failure:
            return jsonify(build_verification_failure_message()), 200

        run_async(handle_decision, runtime, decision, trace_id=trace_id)
        return "", 200
    finally:
        unbind_contextvars("trace_id")


_LOGGING_CONFIGURED = False


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app(runtime: AppRuntime | None = None) -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED
    runtime = runtime or get_runtime()
    settings = runtime.settings

    if not _LOGGING_CONFIGURED:
        configure_logging(settings.log_level)
        _LOGGING_CONFIGURED = True

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel(settings.log_level)

    _register_error_handlers(flask_app)

    @flask_app.route("/slack/events", methods=["POST"])
    def slack_events():
        inbound = InboundRequest.from_headers(request.headers, request.get_data())
        return _handle_slack_request(runtime, inbound)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")

        try:
            current = runtime.settings
            health["config"] = "valid"
        except Exception as exc:
            current = None
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False

        if current is not None:
            try:
                definitions = load_action_definitions(Path(current.action_definition_dir))
                health["actions"] = sorted(definitions)
            except ActionDefinitionError as exc:
                health["actions"] = "invalid"
                health["actions_error"] = str(exc)
                health["ok"] = False

        try:
            with session_scope() as session:
                session.execute(text("SELECT 1"))
            health["db"] = "up"
        except Exception as exc:
            health["db"] = "down"
            health["db_error"] = str(exc)
            health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=3000, debug=True)
