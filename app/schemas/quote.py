from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.domain.enums import QuoteDomain, QuoteUnit
from app.schemas.user import AddressRequest, AddressResponse


class CreateQuoteRequest(BaseModel):
    work_item_id: UUID
    supplier_id: UUID
    unit: QuoteUnit
    unit_price: Decimal = Field(ge=0, max_digits=17, decimal_places=2)
    currency: str = Field(pattern=r"^[A-Z]{3}$")
    domain: QuoteDomain = QuoteDomain.PUBLIC
    location: AddressRequest


class QuoteLocationResponse(AddressResponse):
    id: UUID


class QuoteResponse(BaseModel):
    id: UUID
    work_item_id: UUID
    created_by_id: UUID
    supplier_id: UUID
    unit: QuoteUnit
    unit_price: Decimal
    currency: str
    domain: QuoteDomain
    location: QuoteLocationResponse
    valid: bool
    created_at: datetime
    last_updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteCountsResponse(BaseModel):
    user_id: UUID
    created_count: int
    supplied_count: int
