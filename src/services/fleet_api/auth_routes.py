# src/services/fleet_api/auth_routes.py
"""
Эндпоинты аутентификации: вход, регистрация водителя, выход, текущий пользователь.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.common.constants import RecordStatus, TypeMsg, UserRole
from src.common.logger import log_info, log_warning
from src.config import settings
from src.services.fleet_api.auth import (
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from src.services.fleet_api.dependencies import get_repository
from src.services.fleet_api.repository import FleetRepository
from src.shared.models.fleet import (
    AuthResponse,
    CreateDriverRequest,
    LoginRequest,
    RegisterRequest,
    UserDTO,
)

router = APIRouter(tags=["Auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.auth.AUTH_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.auth.JWT_EXPIRES_DAYS * 24 * 60 * 60,
    )


@router.post("/auth/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    repository: FleetRepository = Depends(get_repository),
) -> AuthResponse:
    """Вход по email и паролю. Токен возвращается в теле и в cookie."""
    email = request.email.strip().lower()
    user = await repository.get_user_by_email(email)

    if user is None or not verify_password(request.password, user.password):
        await log_warning(f"Неудачная попытка входа: {email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Неверный email или пароль")

    token = create_access_token(user.id)
    _set_auth_cookie(response, token)
    await log_info(f"Вход пользователя {email} ({user.role.value})", type_msg=TypeMsg.INFO)
    return AuthResponse(user=user.public(), token=token)


@router.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    repository: FleetRepository = Depends(get_repository),
) -> AuthResponse:
    """Регистрация водителя: пользователь + связанная карточка водителя."""
    email = request.email.strip().lower()
    if await repository.get_user_by_email(email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email уже зарегистрирован")

    user = await repository.create_user(
        email=email,
        password_hash=hash_password(request.password),
        name=request.name,
        role=UserRole.DRIVER,
    )
    driver = await repository.create_driver(CreateDriverRequest(
        user_id=user.id,
        name=user.name,
        rut=request.rut or f"SIN-RUT-{user.id[:8]}",
        phone=request.phone or "SIN-FONO",
        license_number="PENDIENTE",
        status=RecordStatus.ACTIVE,
    ))
    await repository.add_audit_log(user.id, user.name, "register", "driver", driver.id)

    token = create_access_token(user.id)
    _set_auth_cookie(response, token)
    await log_info(f"Зарегистрирован водитель {email}", type_msg=TypeMsg.INFO)
    return AuthResponse(user=user.public(), token=token)


@router.post("/auth/logout")
async def logout(response: Response) -> dict[str, bool]:
    """Удаляет cookie с токеном."""
    response.delete_cookie(settings.auth.AUTH_COOKIE_NAME)
    return {"success": True}


@router.get("/user", response_model=UserDTO)
async def current_user(user: UserDTO = Depends(get_current_user)) -> UserDTO:
    return user
