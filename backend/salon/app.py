"""WSGI entry point: ``gunicorn salon.app:app`` or ``python -m salon.app`` for development."""

import logging
import os

from .db.session import create_tables
from .main import create_app

logger = logging.getLogger(__name__)

app = create_app()

if __name__ == "__main__":
    create_tables()
    logger.info("Database schema ensured")
    app.run(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=os.getenv("FLASK_ENV") == "development",
    )
