"""
JSON API

    POST /api/submit   store one quiz submission
    GET  /api/health   liveness, uptime and version
    GET  /api/stats    number of stored submissions (admin key)
    GET  /api/export   every submission as a fresh .xlsx (admin key)
"""

from __future__ import annotations

import hmac
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request, send_file

from errors import PersistenceError, StarterPackError, UnauthorizedError
from logging_setup import log_success, with_context
from questions import QUESTIONS
from storage import BackupPolicy, ResponseStore
from validation import validate_submission

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")

STARTED_AT = time.monotonic()
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SUBMIT_SUCCESS_MESSAGE = "Saved! Thanks for playing 🎉"


def get_store() -> ResponseStore:
    config = current_app.config
    backup_dir = config.get("BACKUP_DIR")
    return ResponseStore(
        Path(config["RESPONSES_DIR"]),
        workbook_name=config.get("EXCEL_FILENAME", "responses.xlsx"),
        backup=BackupPolicy(
            enabled=bool(config.get("BACKUP_ENABLED", False)),
            directory=Path(backup_dir) if backup_dir else None,
            max_files=int(config.get("BACKUP_MAX_FILES", 10)),
        ),
    )


def require_api_key(view):
    """Admin gate. With no ``ADMIN_API_KEY`` configured (dev mode) everyone passes."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_KEY") or ""
        if expected:
            provided = request.headers.get("X-API-Key", "")
            if not provided or not hmac.compare_digest(provided, expected):
                logger.warning(with_context("Unauthorized access attempt", ip=request.remote_addr))
                raise UnauthorizedError("Unauthorized: API key required")
        return view(*args, **kwargs)

    return wrapper


@api.errorhandler(StarterPackError)
def handle_quiz_error(error: StarterPackError):
    return jsonify({"success": False, "message": error.message}), error.status_code


def process_submission(payload: Any, ip: Optional[str]) -> Tuple[int, Dict[str, Any]]:
    """Validate, sanitise and persist one submission. Returns ``(status, body)``."""
    try:
        record = validate_submission(
            payload,
            ip,
            questions=QUESTIONS,
            now=datetime.now(timezone.utc),
            tz_name=current_app.config.get("TIMEZONE", "Asia/Bangkok"),
        )
        get_store().save(record)
    except StarterPackError as error:
        if not isinstance(error, PersistenceError):
            logger.info(with_context("Submission rejected", reason=error.message, ip=ip))
        return error.status_code, {"success": False, "message": error.message}
    except Exception as exc:
        logger.error(with_context("Submit failed", error=str(exc)))
        return 500, {"success": False, "message": "Failed to save your response"}
    return 200, {"success": True, "message": SUBMIT_SUCCESS_MESSAGE}


@api.post("/submit")
def submit():
    payload = request.get_json(silent=True)
    status, body = process_submission(payload, request.remote_addr)
    return jsonify(body), status


@api.get("/health")
def health():
    return jsonify(
        {
            "success": True,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": f"{int(time.monotonic() - STARTED_AT)} seconds",
            "version": __version__,
        }
    )


@api.get("/stats")
@require_api_key
def stats():
    try:
        total = get_store().count()
    except OSError as exc:
        logger.error(with_context("Stats error", error=str(exc)))
        return jsonify({"success": False, "message": "Could not read stored responses"}), 500
    logger.info(with_context("Stats accessed", total=total, ip=request.remote_addr))
    return jsonify({"success": True, "totalResponses": total})


@api.get("/export")
@require_api_key
def export():
    store = get_store()
    try:
        if not store.response_files():
            return jsonify({"success": False, "message": "No responses to export yet"})
        records = store.load_records()
        buffer = store.export_workbook(records)
    except OSError as exc:
        logger.error(with_context("Export failed", error=str(exc)))
        return jsonify({"success": False, "message": "Export failed"}), 500

    log_success(logger, "Workbook exported", total_rows=len(records), ip=request.remote_addr)
    return send_file(
        buffer,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name="responses_export.xlsx",
    )
