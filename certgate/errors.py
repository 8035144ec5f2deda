"""
Exceptions raised by the certification service.

Rejections (skip, duplicate, unknown coach, invalid completion) are not
exceptions: they are audited decisions returned to the caller. The classes
here cover the cases where no decision could be recorded.
"""

from typing import Optional


class CertificationError(Exception):
    """Base class for certification engine errors."""

    code = "CERTIFICATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidLevelError(CertificationError):
    """Requested level is outside 1..5."""

    code = "INVALID_LEVEL"

    def __init__(self, level: int):
        super().__init__(f"level must be between 1 and 5, got {level}")
        self.level = level


class TemporarilyUnavailableError(CertificationError):
    """Compare-and-swap kept losing; nothing was committed."""

    code = "TEMPORARILY_UNAVAILABLE"

    def __init__(self, coach_id: str, attempts: int, retry_after_seconds: int = 1):
        super().__init__(
            f"certification record for coach {coach_id} is busy; gave up after {attempts} attempts"
        )
        self.coach_id = coach_id
        self.attempts = attempts
        self.retry_after_seconds = retry_after_seconds


class AuditAppendError(CertificationError):
    """The audit entry could not be written; the enclosing transaction is aborted."""

    code = "AUDIT_WRITE_FAILED"


class CoachDirectoryUnavailable(CertificationError):
    """The external identity check could not give an answer."""

    code = "COACH_DIRECTORY_UNAVAILABLE"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageConflict(CertificationError):
    """Compare-and-swap lost the race. Internal: the validator retries it."""

    code = "STORAGE_CONFLICT"

    def __init__(self, coach_id: str, expected_version: int):
        super().__init__(f"version {expected_version} of coach {coach_id} was already replaced")
        self.coach_id = coach_id
        self.expected_version = expected_version
