from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime

class UserBase(BaseModel):
    email: EmailStr

class RegisterRequest(UserBase):
    password: str
    full_name: str
    tax_id: str
    phone: str
    username: Optional[str] = None

class LoginRequest(UserBase):
    password: str

class VerifyCodeRequest(UserBase):
    code: str

class ForgotPasswordRequest(UserBase):
    pass

class ResetPasswordRequest(UserBase):
    code: str
    new_password: str

class PreRegisterRequest(BaseModel):
    tax_id: str
    phone: str

class UpdateProfileRequest(UserBase):
    tax_id: str
    phone: str

class MessageResponse(BaseModel):
    success: bool
    message: str

class RegisterResponse(MessageResponse):
    email: EmailStr

class RedirectResponseBody(BaseModel):
    success: bool
    redirect_url: str

class UserSummary(UserBase):
    id: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    picture: Optional[str] = None
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    is_verified: Optional[bool] = None
    is_active: Optional[bool] = None

class OAuthLoginResponse(BaseModel):
    success: bool
    user: UserSummary
    access_token: str

class ProfileResponse(MessageResponse):
    user: UserSummary

class UserResponse(UserBase):
    id: str
    username: Optional[str] = None
    full_name: str
    tax_id: str
    phone: str
    is_active: bool
    is_verified: bool
    is_google_user: bool
    picture: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
