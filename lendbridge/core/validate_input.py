"""Input Validation — pure identifier checks run before any store access.

Invariants:
    - validate_identifier is PURE: returns a ValidationResult, never raises
    - A valid result always carries a UUID value; an invalid one carries field + reason

Design Decisions:
    - Typed result over exceptions: the shell decides how to surface the failure,
      keeping the "validate fully, then write" ordering explicit
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one identifier."""
    field: str
    value: UUID | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_identifier(raw: object, field: str) -> ValidationResult:
    """Accept a UUID or its canonical string form."""
    if raw is None or raw == "":
        return ValidationResult(field, error=f"{field} required")
    if isinstance(raw, UUID):
        return ValidationResult(field, value=raw)
    if not isinstance(raw, str):
        return ValidationResult(field, error=f"invalid {field}")
    try:
        return ValidationResult(field, value=UUID(raw.strip()))
    except ValueError:
        return ValidationResult(field, error=f"invalid {field}")


def first_error(*results: ValidationResult) -> ValidationResult | None:
    """First failing result, in argument order. None when all pass."""
    for result in results:
        if not result.ok:
            return result
    return None
