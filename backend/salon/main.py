import logging
import os

from dotenv import load_dotenv
from flask import Flask
from flask_login import LoginManager

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    env = os.getenv("FLASK_ENV", "development")
    is_production = env == "production"

    app = Flask(__name__)

    testing_env = os.getenv("TESTING", "").lower().strip()
    if testing_env in ("true", "1", "yes"):
        app.config["TESTING"] = True

    from salon.core import config
    from salon.core.logging_config import setup_logging

    setup_logging(
        app=app,
        log_level=logging.INFO if is_production else logging.DEBUG,
        enable_sql_echo=False,
        log_to_file=config.get_log_to_file() and not app.config.get("TESTING"),
        use_json_format=is_production,
    )
    config.log_timezone_config()
    config.log_app_config()

    app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")
    app.config["HEALTH_CHECK_TOKEN"] = config.HEALTH_CHECK_TOKEN
    app.json.sort_keys = False

    # Refuse to start in production with a default signing secret
    if is_production:
        from salon.core.security import WEAK_SECRETS, get_jwt_secret_key

        if app.config["SECRET_KEY"] in WEAK_SECRETS:
            raise ValueError(
                "Production deployment requires a strong FLASK_SECRET_KEY. "
                "Set FLASK_SECRET_KEY environment variable."
            )
        get_jwt_secret_key()

    # Rate limiting
    from salon.core.limiter_config import is_test_mode, limiter

    app.config["RATELIMIT_STORAGE_URI"] = os.getenv("LIMITER_STORAGE_URI", "memory://")
    limiter.init_app(app)
    test_mode = is_test_mode() or app.config.get("TESTING")
    if test_mode and os.getenv("RATE_LIMIT_ENABLED", "1") == "0":
        limiter.enabled = False
        logger.info(
            "Rate limiting disabled for testing", extra={"context": {"test_mode": True}}
        )

    # Authentication: bearer JWT -> Principal. No sessions, no user table.
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        from flask import jsonify

        return (
            jsonify(
                {
                    "success": False,
                    "error": "unauthorized",
                    "message": "Authentication required",
                }
            ),
            401,
        )

    @login_manager.user_loader
    def load_user(user_id):
        # Principals are never stored in the session
        return None

    @login_manager.request_loader
    def load_principal_from_request(request):
        """Build the Principal from an ``Authorization: Bearer <jwt>`` header."""
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return None

        from salon.core.security import get_principal_from_token
        from salon.domain.entities import Principal

        data = get_principal_from_token(auth_header.split(" ", 1)[1].strip())
        if not data:
            logger.info(
                "Rejected bearer token",
                extra={"context": {"path": request.path}},
            )
            return None
        return Principal(user_id=data["user_id"], role=data["role"])

    from salon.core.api_utils import register_error_handlers

    register_error_handlers(app)

    from salon.controllers.appointment_controller import appointment_bp
    from salon.controllers.attendance_controller import attendance_bp
    from salon.controllers.catalog_controller import combos_bp, services_bp
    from salon.controllers.health_controller import health_bp
    from salon.controllers.staff_controller import staff_bp

    app.register_blueprint(appointment_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(combos_bp)
    app.register_blueprint(health_bp)

    logger.info(
        "Application created",
        extra={"context": {"blueprints": sorted(app.blueprints)}},
    )
    return app
