"""Application error taxonomy."""


class DormMateError(Exception):
    """Base class for all application errors."""


class StoreError(DormMateError):
    """Announcement store operation failed (network, availability, permissions)."""


class ValidationError(DormMateError):
    """Draft is missing required fields; no write was attempted."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        super().__init__(f"Missing required field(s): {', '.join(self.fields)}")


class SubmissionError(DormMateError):
    """Store append failed; the draft is preserved for a retry."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Could not post the announcement: {cause}")


class SubscriptionError(DormMateError):
    """Push delivery failed or was interrupted."""

    def __init__(self, building: str, cause: BaseException) -> None:
        self.building = building
        self.cause = cause
        super().__init__(f"Announcements listener error for {building}: {cause}")
