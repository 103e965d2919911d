"""Error taxonomy for the authentication workflows.

Every failure the auth service reports is one of the ``AuthError``
subclasses below. Each carries a user-facing message and a default HTTP
status; routers may override the status per endpoint.
"""

from fastapi import status


class AuthError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Request failed"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        # Diagnostic text for non-production responses; never shown otherwise.
        self.detail = detail
        super().__init__(self.message)


class ValidationError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please fill all required fields"


class Conflict(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Account already exists"


class NotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


# 406 is part of the published login contract.
class InvalidCredentials(AuthError):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    default_message = "Invalid email or password"


class Expired(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OTP expired"


class Mismatch(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid OTP"


class VerificationRequired(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OTP verification required"


class DeliveryFailure(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to send OTP"


class InternalError(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
