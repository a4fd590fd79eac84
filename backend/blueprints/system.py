import logging
import os
import time
from datetime import UTC, datetime

from flask import Blueprint, current_app, jsonify
from utils.services import get_database

logger = logging.getLogger(__name__)
system_bp = Blueprint("system", __name__)

_started_at = time.monotonic()


@system_bp.route("/api/health")
def api_health():
    """Health check endpoint; 503 when the database is unreachable."""
    try:
        with get_database().get_cursor() as cur:
            cur.execute("SELECT 1")
        db_connected = True
    except Exception as e:
        logger.warning(f"Health check could not reach the database: {e}")
        db_connected = False

    response = {
        "status": "success" if db_connected else "error",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
        "environment": current_app.config.get("ENVIRONMENT", os.getenv("ENVIRONMENT")),
        "database": {
            "status": "connected" if db_connected else "disconnected",
            "connected": db_connected,
        },
    }
    if not db_connected:
        response["message"] = "Database connection failed"
        return jsonify(response), 503
    return jsonify(response), 200
