import uuid
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from legaldocs.core.config import settings

# Токены выпускает внешний провайдер аутентификации, здесь они только проверяются.


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Проверка JWT токена и извлечение данных"""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        return None


def user_id_from_token(token: str) -> Optional[uuid.UUID]:
    """Извлечение идентификатора пользователя из claim `sub`"""
    payload = verify_token(token)
    if not payload:
        return None

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None


def extract_token_from_header(authorization: str) -> Optional[str]:
    """Извлечение токена из заголовка Authorization"""
    if not authorization:
        return None

    parts = authorization.split()

    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]
