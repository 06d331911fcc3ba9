import pytest
from brodesk.core.config import Settings
from brodesk.core.errors import AppError
from brodesk.core.security import create_access_token, decode_access_token, subject_from_token
from jose import jwt


def _settings(**overrides: object) -> Settings:
    return Settings(**{"jwt_secret": "test-secret", "log_dir": None, **overrides})


def test_token_round_trip_checks_audience() -> None:
    settings = _settings()
    token = create_access_token(subject="user-1", settings=settings)

    assert subject_from_token(token, settings) == "user-1"
    assert decode_access_token(token, settings)["aud"] == "authenticated"

    with pytest.raises(AppError):
        decode_access_token(token, _settings(jwt_audience="other"))


def test_expired_or_foreign_tokens_are_rejected() -> None:
    settings = _settings()
    expired = create_access_token(subject="user-1", settings=settings, expires_minutes=-5)
    foreign = create_access_token(subject="user-1", settings=_settings(jwt_secret="other"))

    for token in (expired, foreign):
        with pytest.raises(AppError) as exc_info:
            decode_access_token(token, settings)
        assert exc_info.value.code == "UNAUTHENTICATED"


def test_token_without_subject_is_rejected() -> None:
    settings = _settings(jwt_audience=None)
    token = jwt.encode({"role": "authenticated"}, "test-secret", algorithm="HS256")

    with pytest.raises(AppError) as exc_info:
        subject_from_token(token, settings)
    assert exc_info.value.message == "Session token has no subject."
