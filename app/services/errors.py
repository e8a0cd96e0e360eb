from uuid import UUID


class DuplicateUserError(ValueError):
    def __init__(self, field_name: str, value: str) -> None:
        super().__init__(f"Account with {field_name} '{value}' already exists!")
        self.field_name = field_name
        self.value = value


class DuplicateContactError(ValueError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Contact with email '{email}' already exists!")
        self.email = email


class UserNotFoundError(LookupError):
    def __init__(self, identifier: UUID | str) -> None:
        super().__init__(f"User '{identifier}' not found")
        self.identifier = identifier


class UserAuthenticationNotFoundError(LookupError):
    def __init__(self, username: str) -> None:
        super().__init__(f"User authentication for '{username}' not found")
        self.username = username


class ProjectNotFoundError(LookupError):
    def __init__(self, project_id: UUID) -> None:
        super().__init__(f"Project '{project_id}' not found")
        self.project_id = project_id


class ParticipantNotFoundError(LookupError):
    def __init__(self, participant_id: UUID) -> None:
        super().__init__(f"Participant '{participant_id}' not found")
        self.participant_id = participant_id


class ContactNotFoundError(LookupError):
    def __init__(self, contact_id: UUID) -> None:
        super().__init__(f"Contact '{contact_id}' not found")
        self.contact_id = contact_id


class WorkItemNotFoundError(LookupError):
    def __init__(self, work_item_id: UUID) -> None:
        super().__init__(f"Work item '{work_item_id}' not found")
        self.work_item_id = work_item_id


class EstimateNotFoundError(LookupError):
    def __init__(self, estimate_id: UUID) -> None:
        super().__init__(f"Estimate '{estimate_id}' not found")
        self.estimate_id = estimate_id


class EstimateGroupNotFoundError(LookupError):
    def __init__(self, group_id: UUID) -> None:
        super().__init__(f"Estimate group '{group_id}' not found")
        self.group_id = group_id


class ResourceMismatchError(ValueError):
    """A nested resource was addressed through a parent it does not belong to."""

    def __init__(self, resource: str, resource_id: UUID, parent: str, parent_id: UUID) -> None:
        super().__init__(f"{resource} '{resource_id}' does not belong to {parent} '{parent_id}'")
        self.resource = resource
        self.resource_id = resource_id
        self.parent = parent
        self.parent_id = parent_id


class AuthenticationError(PermissionError):
    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class AccessDeniedError(PermissionError):
    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class InvalidProjectRoleError(ValueError):
    def __init__(self, raw_role: str) -> None:
        super().__init__(f"Invalid role: {raw_role}. Must be BUILDER or OWNER.")
        self.raw_role = raw_role


class InvalidWorkItemDomainError(ValueError):
    def __init__(self, raw_domain: str) -> None:
        super().__init__(f"Invalid domain value: {raw_domain}. Must be PUBLIC or PRIVATE.")
        self.raw_domain = raw_domain


class MissingQuoteFilterError(ValueError):
    def __init__(self) -> None:
        super().__init__("Either created_by_id or supplier_id must be provided")
