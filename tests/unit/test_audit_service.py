from app.services.audit_service import SecurityAuditService
from tests.unit.fakes import RecordingLogger


def make_audit() -> tuple[SecurityAuditService, RecordingLogger]:
    logger = RecordingLogger()
    return SecurityAuditService(logger=logger), logger


def test_login_success_and_failure_levels() -> None:
    audit, logger = make_audit()

    audit.log_login_attempt("alice", "10.0.0.1", success=True)
    audit.log_login_attempt("alice", "10.0.0.1", success=False, failure_reason="Bad credentials")

    assert [(level, event) for level, event, _ in logger.records] == [
        ("info", "LOGIN_SUCCESS"),
        ("warning", "LOGIN_FAILED"),
    ]
    assert logger.records[1][2]["reason"] == "Bad credentials"
    assert logger.records[1][2]["event_type"] == "LOGIN_FAILED"


def test_token_validation_failure_never_logs_full_token() -> None:
    audit, logger = make_audit()
    token = "eyJhbGciOiJIUzI1NiJ9.payload.signature"

    audit.log_token_validation_failure(token, "10.0.0.1", "Token expired")

    _, event, fields = logger.records[0]
    assert event == "TOKEN_VALIDATION_FAILED"
    assert fields["token_prefix"] == "eyJhbGciOi..."
    assert token not in str(fields)


def test_unauthorized_access_defaults_to_anonymous() -> None:
    audit, logger = make_audit()

    audit.log_unauthorized_access("/api/v1/projects", "GET", "10.0.0.1")

    assert logger.records[0][2]["username"] == "anonymous"


def test_rate_limit_events() -> None:
    audit, logger = make_audit()

    audit.log_rate_limit_violation("10.0.0.1", "/api/auth/login")
    audit.log_account_lockout("10.0.0.1", "Rate limit exceeded - 5 attempts in 15 minutes")

    assert [(level, event) for level, event, _ in logger.records] == [
        ("warning", "RATE_LIMIT_VIOLATION"),
        ("error", "ACCOUNT_LOCKED"),
    ]
    assert logger.records[0][2]["endpoint"] == "/api/auth/login"


def test_security_event_carries_details() -> None:
    audit, logger = make_audit()

    audit.log_security_event(
        "ADMIN_USER_CREATED", "Admin user created", username="root", new_admin_user="bob"
    )

    level, event, fields = logger.records[0]
    assert (level, event) == ("info", "ADMIN_USER_CREATED")
    assert fields["new_admin_user"] == "bob"
    assert fields["description"] == "Admin user created"
