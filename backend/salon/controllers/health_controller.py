"""
Health controller - health check endpoints for monitoring.
"""

import logging

from flask import Blueprint, jsonify
from sqlalchemy import text

from salon.core import config, timekeeping
from salon.core.api_utils import health_endpoint_decorator
from salon.core.limiter_config import limiter
from salon.db.session import SessionLocal, get_engine

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


def check_database_connection() -> bool:
    """Run ``SELECT 1`` on a fresh session."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(
            "Database connection failed",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        return False
    finally:
        db.close()


@health_bp.route("", methods=["GET"])
@limiter.exempt
def health_check():
    """Liveness probe. No authentication; 503 when the database is unreachable."""
    db_status = check_database_connection()
    return jsonify(
        {
            "status": "healthy" if db_status else "unhealthy",
            "database": "connected" if db_status else "disconnected",
        }
    ), (200 if db_status else 503)


@health_bp.route("/details", methods=["GET"])
@limiter.exempt
@health_endpoint_decorator
def health_details():
    """
    Detailed status for operators. Requires the ``X-Health-Token`` header to
    match ``HEALTH_CHECK_TOKEN``.
    """
    engine = get_engine()
    return jsonify(
        {
            "status": "healthy" if check_database_connection() else "unhealthy",
            "dialect": engine.dialect.name,
            "timezone": str(config.APP_TZ),
            "today": timekeeping.today().isoformat(),
            "now_utc": timekeeping.now().isoformat(),
        }
    )
