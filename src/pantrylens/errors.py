"""Exception types raised by PantryLens."""

from __future__ import annotations


class PantryLensError(Exception):
    """Base class for all PantryLens errors."""


class ConfigurationError(PantryLensError, ValueError):
    """Invalid configuration, such as an unknown OCR method."""


class AcquisitionError(PantryLensError):
    """
    An OCR backend was unreachable or returned a malformed response.

    Attributes:
        transitions: Acquisition states passed through before the failure,
            empty when raised by a backend directly
    """

    def __init__(self, message: str, transitions: tuple = ()) -> None:
        super().__init__(message)
        self.transitions = tuple(transitions)


class AcquisitionCancelled(AcquisitionError):
    """The caller cancelled an in-flight acquisition."""


class ValidationError(PantryLensError, ValueError):
    """
    Confirmation items failed validation.

    Attributes:
        violations: One human-readable message per problem found
    """

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "Validation failed")
