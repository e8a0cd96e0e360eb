"""Security audit trail.

Every security-relevant event is written as one structured record on the
``security_audit`` logger, so deployments can route it to a separate sink.
"""

from typing import Any

from app.core.logging import SECURITY_AUDIT_LOGGER, get_logger
from app.core.security import token_prefix


class SecurityAuditService:
    def __init__(self, logger: Any | None = None) -> None:
        self.logger = logger or get_logger(SECURITY_AUDIT_LOGGER)

    def log_login_attempt(
        self,
        username: str,
        client_ip: str | None,
        success: bool,
        failure_reason: str | None = None,
    ) -> None:
        if success:
            self.logger.info(
                "LOGIN_SUCCESS",
                event_type="LOGIN_SUCCESS",
                username=username,
                client_ip=client_ip,
            )
        else:
            self.logger.warning(
                "LOGIN_FAILED",
                event_type="LOGIN_FAILED",
                username=username,
                client_ip=client_ip,
                reason=failure_reason,
            )

    def log_registration_attempt(
        self,
        username: str,
        email: str,
        client_ip: str | None,
        success: bool,
        failure_reason: str | None = None,
    ) -> None:
        if success:
            self.logger.info(
                "REGISTRATION_SUCCESS",
                event_type="REGISTRATION_SUCCESS",
                username=username,
                email=email,
                client_ip=client_ip,
            )
        else:
            self.logger.warning(
                "REGISTRATION_FAILED",
                event_type="REGISTRATION_FAILED",
                username=username,
                email=email,
                client_ip=client_ip,
                reason=failure_reason,
            )

    def log_token_generation(self, username: str, client_ip: str | None) -> None:
        self.logger.info(
            "TOKEN_GENERATED",
            event_type="TOKEN_GENERATED",
            username=username,
            client_ip=client_ip,
        )

    def log_token_validation_failure(
        self, token: str | None, client_ip: str | None, reason: str
    ) -> None:
        # Never write the full token.
        self.logger.warning(
            "TOKEN_VALIDATION_FAILED",
            event_type="TOKEN_VALIDATION_FAILED",
            token_prefix=token_prefix(token),
            client_ip=client_ip,
            reason=reason,
        )

    def log_unauthorized_access(
        self,
        resource: str,
        method: str,
        client_ip: str | None,
        username: str | None = None,
    ) -> None:
        self.logger.warning(
            "UNAUTHORIZED_ACCESS",
            event_type="UNAUTHORIZED_ACCESS",
            resource=resource,
            method=method,
            client_ip=client_ip,
            username=username or "anonymous",
        )

    def log_rate_limit_violation(self, client_key: str, path: str) -> None:
        self.logger.warning(
            "RATE_LIMIT_VIOLATION",
            event_type="RATE_LIMIT_VIOLATION",
            client_ip=client_key,
            endpoint=path,
        )

    def log_account_lockout(self, client_key: str, reason: str) -> None:
        self.logger.error(
            "ACCOUNT_LOCKED",
            event_type="ACCOUNT_LOCKED",
            client_ip=client_key,
            reason=reason,
        )

    def log_security_event(
        self,
        event_type: str,
        description: str,
        client_ip: str | None = None,
        username: str | None = None,
        **details: Any,
    ) -> None:
        self.logger.info(
            event_type,
            event_type=event_type,
            description=description,
            client_ip=client_ip,
            username=username,
            **details,
        )
