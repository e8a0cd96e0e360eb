from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.enums import ResponseErrorType


class MessageResponse(BaseModel):
    message: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    timestamp: datetime
    status: int
    message: str
    errors: list[str] = Field(default_factory=list)
    path: str
    method: str
    error_type: ResponseErrorType


class RateLimitErrorResponse(ErrorResponse):
    retry_after: str
