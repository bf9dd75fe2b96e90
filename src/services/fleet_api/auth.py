# src/services/fleet_api/auth.py
"""
Аутентификация и авторизация fleet_api.

- JWT (HS256) с id пользователя, срок 30 дней
- Токен принимается из заголовка Authorization: Bearer или из cookie
- Пароли хранятся как bcrypt-хеш
- Доступ к эндпоинтам ограничивается ролями
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request, status

from src.common.constants import UserRole
from src.config import settings
from src.services.fleet_api.dependencies import get_repository
from src.services.fleet_api.repository import FleetRepository
from src.shared.models.fleet import UserDTO

BCRYPT_ROUNDS = 10


# =============================================================================
# ПАРОЛИ
# =============================================================================

def hash_password(password: str) -> str:
    """Возвращает bcrypt-хеш пароля."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Проверяет пароль. Повреждённый хеш считается несовпадением."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =============================================================================
# ТОКЕНЫ
# =============================================================================

def create_access_token(user_id: str, now: datetime | None = None) -> str:
    """Выпускает JWT с id пользователя."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.auth.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.auth.JWT_SECRET, algorithm=settings.auth.JWT_ALGORITHM)


def decode_access_token(token: str) -> str | None:
    """Возвращает id пользователя или None, если токен невалиден или истёк."""
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.auth.JWT_SECRET,
            algorithms=[settings.auth.JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        return None
    user_id = payload.get("id")
    return user_id if isinstance(user_id, str) else None


def extract_token(request: Request) -> str | None:
    """Bearer-токен из заголовка, иначе cookie."""
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return request.cookies.get(settings.auth.AUTH_COOKIE_NAME)


async def authenticate_token(token: str | None, repository: FleetRepository) -> UserDTO | None:
    """Пользователь по токену (None — не аутентифицирован)."""
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    user = await repository.get_user_by_id(user_id)
    return user.public() if user else None


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

async def get_current_user(
    request: Request,
    repository: FleetRepository = Depends(get_repository),
) -> UserDTO:
    """Текущий пользователь или 401."""
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Не аутентифицирован")

    user = await authenticate_token(token, repository)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Токен истёк или невалиден")
    return user


def require_roles(*roles: UserRole) -> Callable[..., Any]:
    """
    Dependency, пропускающая только указанные роли (иначе 403).

    Example:
        @router.post("/drivers", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    async def checker(user: UserDTO = Depends(get_current_user)) -> UserDTO:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Недостаточно прав")
        return user

    return checker
