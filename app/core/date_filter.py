from dataclasses import dataclass
from datetime import UTC, datetime

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DateFilter:
    """Optional bounds on ``created_at`` / ``last_updated_at`` (all inclusive)."""

    created_after: datetime | None = None
    created_before: datetime | None = None
    updated_after: datetime | None = None
    updated_before: datetime | None = None

    @property
    def has_filters(self) -> bool:
        return any(
            value is not None
            for value in (
                self.created_after,
                self.created_before,
                self.updated_after,
                self.updated_before,
            )
        )

    @classmethod
    def empty(cls) -> "DateFilter":
        return cls()


def parse_timestamp(raw: str | None, param_name: str) -> datetime | None:
    if raw is None or not raw.strip():
        return None

    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError:
        logger.warning(
            "invalid_date_filter",
            param=param_name,
            value=raw,
            expected="ISO 8601",
        )
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def create_date_filter(
    created_after: str | None = None,
    created_before: str | None = None,
    updated_after: str | None = None,
    updated_before: str | None = None,
) -> DateFilter:
    return DateFilter(
        created_after=parse_timestamp(created_after, "created_after"),
        created_before=parse_timestamp(created_before, "created_before"),
        updated_after=parse_timestamp(updated_after, "updated_after"),
        updated_before=parse_timestamp(updated_before, "updated_before"),
    )
