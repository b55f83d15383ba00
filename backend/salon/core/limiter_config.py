import os
import sys

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import current_user

TRUTHY = ("true", "1", "yes")


def is_test_mode() -> bool:
    """True under pytest or when TESTING is set."""
    if os.getenv("TESTING", "").strip().lower() in TRUTHY:
        return True
    return "pytest" in sys.modules or bool(os.getenv("PYTEST_CURRENT_TEST"))


def rate_limit_key() -> str:
    """Bucket authenticated callers by principal, anonymous ones by address."""
    if current_user and getattr(current_user, "is_authenticated", False):
        return f"principal:{current_user.get_id()}"
    return get_remote_address()


# Shared instance; routes decorate with it before create_app() binds it.
limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=["300 per hour", "60 per minute"],
    storage_uri=os.getenv("LIMITER_STORAGE_URI", "memory://"),
)
