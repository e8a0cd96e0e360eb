import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.enums import Role
from app.schemas.user import ContactRequest

PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&_"
_PASSWORD_ALLOWED = re.compile(r"^[A-Za-z\d@$!%*?&_]+$")


class SignUpRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=8, max_length=128)
    contact: ContactRequest

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        cleaned = value.strip()
        if len(cleaned) < 3:
            raise ValueError("Username must be between 3 and 50 characters")
        return cleaned

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not _PASSWORD_ALLOWED.match(value):
            raise ValueError(
                "Password may only contain letters, digits and the characters "
                f"{PASSWORD_SPECIAL_CHARACTERS}"
            )
        if (
            not any(char.islower() for char in value)
            or not any(char.isupper() for char in value)
            or not any(char.isdigit() for char in value)
            or not any(char in PASSWORD_SPECIAL_CHARACTERS for char in value)
        ):
            raise ValueError(
                "Password must contain at least one lowercase letter, one uppercase "
                "letter, one digit and one special character"
            )
        return value


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=100, description="Username or email")
    password: str = Field(min_length=6, max_length=128)


class JwtAuthenticationResponse(BaseModel):
    token_type: str = "Bearer"
    access_token: str
    expiry_date: datetime
    expires_in_seconds: int


class UserSummaryResponse(BaseModel):
    id: UUID
    username: str
    email: str
    role: Role
    authorities: list[str]


class UserAuthenticationResponse(BaseModel):
    id: UUID
    username: str
    role: Role
    enabled: bool
    created_at: datetime
    last_login: datetime | None

    model_config = ConfigDict(from_attributes=True)
