from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.domain.enums import ContactLabel


class AddressRequest(BaseModel):
    unit_number: str | None = Field(default=None, max_length=20)
    street_number: str | None = Field(default=None, max_length=20)
    street_name: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=100)
    state_or_province: str | None = Field(default=None, max_length=100)
    postal_or_zip_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)


class AddressResponse(BaseModel):
    unit_number: str | None
    street_number: str | None
    street_name: str | None
    city: str | None
    state_or_province: str | None
    postal_or_zip_code: str | None
    country: str | None

    model_config = ConfigDict(from_attributes=True)


class ContactRequest(AddressRequest):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr = Field(max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    labels: list[ContactLabel] = Field(default_factory=list)


class ContactResponse(AddressResponse):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None
    labels: list[ContactLabel]


class CreateUserRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr = Field(max_length=100)
    contact: ContactRequest


class UserResponse(BaseModel):
    id: UUID
    username: str
    email: str
    registered: bool
    contact: ContactResponse

    model_config = ConfigDict(from_attributes=True)
