import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordBearer

from identity.core.config import settings
from identity.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    OAuthLoginResponse,
    PreRegisterRequest,
    ProfileResponse,
    RedirectResponseBody,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    VerifyCodeRequest,
)
from identity.services.auth import AuthService, get_auth_service
from identity.utils.errors import IdentityError, InvalidTokenError, ValidationError
from identity.utils.google import exchange_code_for_token, get_google_auth_url, get_google_user_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

@router.post("/register", response_model=RegisterResponse)
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    return await service.register(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        tax_id=data.tax_id,
        phone=data.phone,
        username=data.username,
    )

@router.post("/login", response_model=Optional[UserResponse])
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    return await service.login(data.email, data.password)

@router.post("/verify-code", response_model=MessageResponse)
async def verify_code(data: VerifyCodeRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    return await service.verify_code(data.email, data.code)

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    return await service.forgot_password(data.email)

@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    return await service.reset_password(data.email, data.code, data.new_password)

@router.post("/google/pre-register", response_model=RedirectResponseBody)
async def google_pre_register(data: PreRegisterRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    return service.pre_register_oauth(data.tax_id, data.phone)

@router.get("/google")
async def google_login(state: Optional[str] = None) -> Any:
    return RedirectResponse(get_google_auth_url(state))

@router.get("/google/callback", response_model=OAuthLoginResponse)
async def google_callback(
    code: str,
    state: Optional[str] = None,
    service: AuthService = Depends(get_auth_service),
) -> Any:
    token_data = await exchange_code_for_token(code)
    id_token = token_data.get("id_token")
    if not id_token:
        raise ValidationError("Failed to verify Google authentication")

    user_info = await get_google_user_info(id_token)
    result = await service.oauth_reconcile(user_info)

    if state:
        try:
            carried = service.read_state(state)
            completed = await service.update_profile(result["user"]["email"], carried["tax_id"], carried["phone"])
            result["user"].update(completed["user"])
        except IdentityError as e:
            logger.warning(f"Skipping profile completion from state for {result['user']['email']}: {e.message}")

    return result

@router.post("/update-google-data", response_model=ProfileResponse)
async def update_google_data(data: UpdateProfileRequest, service: AuthService = Depends(get_auth_service)) -> Any:
    logger.info(f"Updating profile data for {data.email}")
    return await service.update_profile(data.email, data.tax_id, data.phone)

@router.get("/me", response_model=UserResponse)
async def read_users_me(
    token: Optional[str] = Depends(oauth2_scheme),
    service: AuthService = Depends(get_auth_service),
) -> Any:
    if not token:
        raise InvalidTokenError("Not authenticated")
    return await service.current_user(token)
