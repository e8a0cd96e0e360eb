from enum import Enum

USER_AUTHORITIES = frozenset(
    {"CREATE_PROJECT", "VIEW_PROJECT", "UPDATE_PROJECT", "DELETE_PROJECT"}
)
PREMIUM_ONLY_AUTHORITIES: frozenset[str] = frozenset()
ADMIN_ONLY_AUTHORITIES = frozenset({"CREATE_ADMIN", "ADMIN_USERS"})


class Role(str, Enum):
    VIEWER = "VIEWER"
    USER = "USER"
    PREMIUM_USER = "PREMIUM_USER"
    ADMIN = "ADMIN"

    @property
    def authorities(self) -> frozenset[str]:
        return _ROLE_AUTHORITIES[self]

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities


_ROLE_AUTHORITIES: dict[Role, frozenset[str]] = {
    Role.VIEWER: frozenset(),
    Role.USER: USER_AUTHORITIES,
    Role.PREMIUM_USER: USER_AUTHORITIES | PREMIUM_ONLY_AUTHORITIES,
    Role.ADMIN: USER_AUTHORITIES | PREMIUM_ONLY_AUTHORITIES | ADMIN_ONLY_AUTHORITIES,
}


class ContactLabel(str, Enum):
    SUPPLIER = "SUPPLIER"
    SUBCONTRACTOR = "SUBCONTRACTOR"
    LENDER = "LENDER"
    PERMIT_AUTHORITY = "PERMIT_AUTHORITY"
    OTHER = "OTHER"
    BUILDER = "BUILDER"
    OWNER = "OWNER"
    ADMINISTRATOR = "ADMINISTRATOR"


class ProjectRole(str, Enum):
    BUILDER = "BUILDER"
    OWNER = "OWNER"


class ProjectScope(str, Enum):
    BOTH = "both"
    BUILDER = "builder"
    OWNER = "owner"


class EstimateLineStrategy(str, Enum):
    AVERAGE = "AVERAGE"
    LATEST = "LATEST"
    LOWEST = "LOWEST"


class WorkItemDomain(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class QuoteUnit(str, Enum):
    SQUARE_METER = "SQUARE_METER"
    SQUARE_FOOT = "SQUARE_FOOT"
    CUBIC_METER = "CUBIC_METER"
    CUBIC_FOOT = "CUBIC_FOOT"
    METER = "METER"
    FOOT = "FOOT"
    EACH = "EACH"
    KILOGRAM = "KILOGRAM"
    TON = "TON"
    LITER = "LITER"
    MILLILITER = "MILLILITER"
    HOUR = "HOUR"
    DAY = "DAY"

    @property
    def symbol(self) -> str:
        return _QUOTE_UNIT_SYMBOLS[self]


_QUOTE_UNIT_SYMBOLS: dict[QuoteUnit, str] = {
    QuoteUnit.SQUARE_METER: "m²",
    QuoteUnit.SQUARE_FOOT: "ft²",
    QuoteUnit.CUBIC_METER: "m³",
    QuoteUnit.CUBIC_FOOT: "ft³",
    QuoteUnit.METER: "m",
    QuoteUnit.FOOT: "ft",
    QuoteUnit.EACH: "each",
    QuoteUnit.KILOGRAM: "kg",
    QuoteUnit.TON: "ton",
    QuoteUnit.LITER: "L",
    QuoteUnit.MILLILITER: "mL",
    QuoteUnit.HOUR: "hr",
    QuoteUnit.DAY: "day",
}


class QuoteDomain(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class ResponseErrorType(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    ACCESS_DENIED = "ACCESS_DENIED"
    CONFLICT_ERROR = "CONFLICT_ERROR"
    BAD_REQUEST_ERROR = "BAD_REQUEST_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def default_message(self) -> str:
        return _DEFAULT_ERROR_MESSAGES[self]


_DEFAULT_ERROR_MESSAGES: dict[ResponseErrorType, str] = {
    ResponseErrorType.VALIDATION_ERROR: "Validation failed",
    ResponseErrorType.AUTHENTICATION_ERROR: "Authentication failed",
    ResponseErrorType.AUTHENTICATION_REQUIRED: "Authentication required",
    ResponseErrorType.ACCESS_DENIED: "Access denied",
    ResponseErrorType.CONFLICT_ERROR: "Resource conflict occurred",
    ResponseErrorType.BAD_REQUEST_ERROR: "Bad request",
    ResponseErrorType.NOT_FOUND: "Resource not found",
    ResponseErrorType.RATE_LIMIT_EXCEEDED: "Too many requests. Please try again later.",
    ResponseErrorType.INTERNAL_ERROR: "Internal server error occurred",
}
