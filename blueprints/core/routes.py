from __future__ import annotations
import json, logging
from datetime import datetime, timezone

from flask import g, jsonify, request
from flask_login import current_user
from werkzeug.wrappers.response import Response

from . import bp

LOG_FIELDS = ("event", "path", "method", "status", "duration_ms", "actor")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": _now().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _setup_structured_logging(app):
    # вешаем на root: логгеры модулей (blueprints.*) пишут через него
    logger = logging.getLogger()
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if app.debug else logging.INFO)


def _actor_id() -> str | None:
    # current_user трогаем только если загрузчик уже отработал
    if "_login_user" not in g:
        return None
    return getattr(current_user, "actor_id", None)


@bp.before_app_request
def _start_timer():
    g._req_start = _now()


@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((_now() - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "actor": _actor_id(),
    }
    # логгер уже настроен в _on_register
    logging.getLogger("timemate.request").info("request handled", extra=extra)
    return response


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


@bp.get("/health")
def health():
    return jsonify({
        "success": True,
        "status": "ok",
        "ts": _now().isoformat(timespec="seconds").replace("+00:00", "Z"),
    })
