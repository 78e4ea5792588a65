"""
Password Reset Use Case DTOs (Data Transfer Objects)

Responses are serialized with camelCase keys (expiresIn, resetToken).
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartPasswordResetResponse(_CamelModel):
    """Response for start password reset use case (same for unknown emails)"""

    success: bool
    message: str
    email: str
    expires_in: int


class VerifyPasswordResetResponse(_CamelModel):
    """Response for verify password reset use case"""

    success: bool
    message: str
    email: str
    reset_token: str
    expires_in: int
