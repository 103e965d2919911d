from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from chapter_api.auth.dependencies import get_auth_service, get_current_account
from chapter_api.core import config
from chapter_api.core.errors import AuthError, NotFound
from chapter_api.models.account import Account
from chapter_api.services.auth_service import AuthService

router = APIRouter(tags=['auth'])


class RegisterRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    college: str | None = None
    role: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RequestResetRequest(BaseModel):
    email: str | None = None


class VerifyResetRequest(BaseModel):
    email: str | None = None
    code: str | None = None

    @field_validator('code', mode='before')
    @classmethod
    def coerce_numeric_code(cls, value):
        # Clients occasionally send the code as a JSON number.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CompleteResetRequest(BaseModel):
    email: str | None = None
    new_password: str | None = Field(default=None, alias='newPassword')

    class Config:
        populate_by_name = True


class ProfileUpdateRequest(BaseModel):
    username: str | None = None
    college: str | None = None
    github: str | None = None
    linkedin: str | None = None
    profile: str | None = None


class AccountResponse(BaseModel):
    id: int
    username: str
    email: str
    college: str
    role: str
    github: str = ''
    linkedin: str = ''
    profile: str = ''
    created_at: datetime | None = Field(default=None, serialization_alias='createdAt')
    updated_at: datetime | None = Field(default=None, serialization_alias='updatedAt')

    class Config:
        from_attributes = True


class AccountSummaryResponse(BaseModel):
    username: str
    email: str
    role: str

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    user: AccountResponse


class LoginResponse(BaseModel):
    account: AccountSummaryResponse
    token: str
    role: str


class MessageResponse(BaseModel):
    message: str


class CurrentAccountResponse(BaseModel):
    user: AccountResponse


class ProfileUpdateResponse(BaseModel):
    message: str
    user: AccountResponse


def error_response(exc: AuthError, status_code: int | None = None) -> JSONResponse:
    content = {'message': exc.message}
    if exc.detail and config.EXPOSE_ERROR_DETAILS:
        content['error'] = exc.detail
    return JSONResponse(status_code=status_code or exc.status_code, content=content)


@router.post('/register', response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    try:
        account = service.register(
            username=data.username,
            email=data.email,
            password=data.password,
            college=data.college,
            role=data.role,
        )
    except AuthError as exc:
        return error_response(exc)

    return RegisterResponse(
        message='Registration successful',
        user=AccountResponse.model_validate(account),
    )


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    try:
        result = service.login(email=data.email, password=data.password)
    except AuthError as exc:
        return error_response(exc)

    return LoginResponse(
        account=AccountSummaryResponse.model_validate(result.account),
        token=result.token,
        role=result.account.role,
    )


@router.post('/request-reset', response_model=MessageResponse)
def request_reset(data: RequestResetRequest, service: AuthService = Depends(get_auth_service)):
    try:
        service.request_reset(email=data.email)
    except AuthError as exc:
        return error_response(exc)

    return MessageResponse(message='OTP sent successfully')


@router.post('/verify-reset', response_model=MessageResponse)
def verify_reset(data: VerifyResetRequest, service: AuthService = Depends(get_auth_service)):
    try:
        service.verify_reset(email=data.email, code=data.code)
    except NotFound as exc:
        return error_response(exc, status_code=status.HTTP_400_BAD_REQUEST)
    except AuthError as exc:
        return error_response(exc)

    return MessageResponse(message='OTP verified successfully')


@router.post('/complete-reset', response_model=MessageResponse)
def complete_reset(data: CompleteResetRequest, service: AuthService = Depends(get_auth_service)):
    try:
        service.complete_reset(email=data.email, new_password=data.new_password)
    except AuthError as exc:
        return error_response(exc)

    return MessageResponse(message='Password reset successful')


@router.get('/me', response_model=CurrentAccountResponse)
def me(current_account: Account = Depends(get_current_account)):
    return CurrentAccountResponse(user=AccountResponse.model_validate(current_account))


@router.put('/profile', response_model=ProfileUpdateResponse)
def update_profile(
    data: ProfileUpdateRequest,
    current_account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    try:
        account = service.update_profile(current_account.id, **data.model_dump(exclude_none=True))
    except AuthError as exc:
        return error_response(exc)

    return ProfileUpdateResponse(
        message='Profile updated successfully',
        user=AccountResponse.model_validate(account),
    )
