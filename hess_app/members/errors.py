"""Typed failures for the registration review pipeline.

Every error carries a stable ``code`` so JSON clients can tell a retryable
failure (a store or mail outage) from a terminal one (bad input, already
resolved).
"""

from typing import ClassVar


class PipelineError(Exception):
    code: ClassVar[str] = "error"
    retryable: ClassVar[bool] = False
    http_status: ClassVar[int] = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def as_payload(self) -> dict[str, object]:
        return {"error": self.message, "code": self.code, "retryable": self.retryable}


class ValidationError(PipelineError):
    code = "validation"
    http_status = 400


class MissingAdminIdentity(ValidationError):
    code = "missing_admin_identity"

    def __init__(self, message: str = "Admin user ID is required") -> None:
        super().__init__(message)


class InvalidRecipient(ValidationError):
    code = "invalid_recipient"

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid email format: {address}")
        self.address = address


class NotFoundError(PipelineError):
    code = "not_found"
    http_status = 404


class NoProfileFound(NotFoundError):
    code = "no_profile_found"
    http_status = 400

    def __init__(self, message: str = "No profile found for this organization") -> None:
        super().__init__(message)


class ConflictError(PipelineError):
    code = "conflict"
    http_status = 409


class PersistenceError(PipelineError):
    code = "persistence"
    retryable = True

    def __init__(self, message: str = "", *, step: str = "") -> None:
        super().__init__(message)
        self.step = step

    def as_payload(self) -> dict[str, object]:
        payload = super().as_payload()
        if self.step:
            payload["step"] = self.step
        return payload


class SnapshotInsertFailed(PersistenceError):
    code = "snapshot_insert_failed"


class NotificationError(PipelineError):
    code = "notification"
    retryable = True
    http_status = 502
