"""Exception hierarchy for the risk engine.

High-risk outcomes are not errors: ``analyze`` returns them as a
``RiskAssessment`` with ``recommended_action=BLOCK``. Exceptions are reserved
for genuinely invalid calls, plus ``TransactionBlockedError`` which callers
can raise at their own boundary via ``ensure_allowed``.

All exceptions have:
- error_code: Machine-readable error code (e.g., "VALIDATION_ERROR")
- message: Human-readable error message
- details: Optional additional context dictionary
- to_dict(): Convert to API response format
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from riskgate.models import RiskAssessment


class RiskEngineError(Exception):
    """Base exception for all risk engine errors."""

    error_code: str = "RISK_ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class RiskValidationError(RiskEngineError):
    """Invalid input data or parameters."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details)


class TransactionBlockedError(RiskEngineError):
    """Raised by callers when an assessment recommends blocking."""

    error_code = "TRANSACTION_BLOCKED"

    def __init__(self, message: str, assessment: "RiskAssessment") -> None:
        super().__init__(
            message,
            details={
                "risk_level": assessment.risk_level.value,
                "reason": assessment.reason,
            },
        )
        self.assessment = assessment


def ensure_allowed(assessment: "RiskAssessment") -> "RiskAssessment":
    """Return the assessment unchanged unless it recommends blocking."""
    if assessment.blocked:
        raise TransactionBlockedError(
            "Transaction blocked due to high fraud risk",
            assessment,
        )
    return assessment


def require_identifier(value: Optional[str], field: str) -> str:
    """Reject empty or blank identifiers on mutating calls."""
    if not value or not value.strip():
        raise RiskValidationError(f"{field} must be a non-empty string", field=field)
    return value
