"""Exception types for Team Health Guard."""


class TeamHealthGuardError(Exception):
    """Base exception for all Team Health Guard errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ContractViolation(TeamHealthGuardError, ValueError):
    """
    An input record does not have the shape the analytics engine expects.

    These are programming errors in the caller (negative line counts,
    unparsable timestamps, weights that do not sum to 1.0) and are never
    caught inside the engine.
    """

    def __init__(self, field: str, reason: str, value: object = None):
        details = {"field": field}
        if value is not None:
            details["value"] = repr(value)
        super().__init__(f"Invalid '{field}': {reason}", details)
        self.field = field
        self.value = value
