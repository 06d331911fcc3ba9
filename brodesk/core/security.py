from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from brodesk.core.config import Settings
from brodesk.core.errors import UnauthenticatedError


def create_access_token(
    *,
    subject: str,
    settings: Settings,
    expires_minutes: int = 60,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError as exc:
        raise UnauthenticatedError("Invalid session token.") from exc


def subject_from_token(token: str, settings: Settings) -> str:
    payload = decode_access_token(token, settings)
    subject = payload.get("sub")
    if not subject:
        raise UnauthenticatedError("Session token has no subject.")
    return str(subject)
