from typing import Optional

import bcrypt
from itsdangerous import BadData, URLSafeTimedSerializer

from config import get_settings


class AuthenticationError(Exception):
    pass


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.secret_key, salt="auth-token")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def issue_token(user_id: int) -> str:
    return _serializer().dumps({"u": user_id})


def read_token(token: str, max_age_hours: Optional[int] = None) -> int:
    """Return the user id carried by ``token``.

    Raises :class:`AuthenticationError` for tampered, malformed or expired
    tokens.
    """
    if max_age_hours is None:
        max_age_hours = get_settings().token_max_age_hours
    try:
        data = _serializer().loads(token, max_age=max_age_hours * 3600)
    except BadData as exc:
        raise AuthenticationError("Not authorized, token failed") from exc

    user_id = data.get("u") if isinstance(data, dict) else None
    if not isinstance(user_id, int):
        raise AuthenticationError("Not authorized, token failed")
    return user_id


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer"):
        raise AuthenticationError("Not authorized, no token")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or not parts[1].strip():
        raise AuthenticationError("Not authorized, no token")
    return parts[1].strip()
