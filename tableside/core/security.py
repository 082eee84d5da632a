"""Admin password hashing and signed session cookies."""

import logging
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from tableside.core.config import get_settings

logger = logging.getLogger(__name__)

ph = PasswordHasher()

SESSION_SALT = "tableside-admin-session"


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored argon2 hash."""
    try:
        return ph.verify(hashed_password, plain_password)
    except VerifyMismatchError:
        return False
    except VerificationError as exc:
        logger.error("argon2 verification error: %s", exc)
        return False


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().secret_key, salt=SESSION_SALT)


def create_session_token(user_id: str, email: str) -> str:
    """Sign the session payload stored in the admin cookie."""
    return _serializer().dumps({"uid": user_id, "email": email})


def read_session_token(token: Optional[str]) -> Optional[str]:
    """Return the user id inside a valid, unexpired token, else ``None``."""
    if not token:
        return None
    try:
        payload = _serializer().loads(token, max_age=get_settings().session_max_age_seconds)
    except SignatureExpired:
        logger.info("Admin session expired")
        return None
    except BadSignature:
        logger.warning("Rejected admin session with a bad signature")
        return None
    return payload.get("uid")
