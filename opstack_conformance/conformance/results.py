"""
Result types for explicit pass/fail tracking of conformance checks.

Every mismatch lands in a report attributed to the property and rule
variant that produced it, so nothing fails silently.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from opstack_conformance.shared.types import RuleVariant

RECEIPTS_ROOT = "receipts_root"
BASE_FEE = "base_fee"


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    ERROR = "error"  # Opposite variant also matched, activation ambiguous
    CRITICAL = "critical"  # Assumed variant disagreed with the chain


@dataclass
class ProcessingError:
    """
    Represents a single processing error with context.

    Attributes:
        source: Check that generated the error (e.g., "receipts_root")
        message: Human-readable error description
        severity: How severe the error is (affects how it is reported)
        context: Additional context like block number and variant
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


@dataclass
class CheckResult:
    """Outcome of evaluating one property under one rule variant."""

    check: str
    variant: RuleVariant
    block_number: int
    expected: Any = None
    observed: Any = None
    matches: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "check": self.check,
            "variant": self.variant.label,
            "block_number": self.block_number,
            "expected": _jsonable(self.expected),
            "observed": _jsonable(self.observed),
            "matches": self.matches,
            "error": self.error,
        }


@dataclass
class ActivationReport:
    """
    Both variants of one property, checked against an assumed activation.

    `passed` holds when the assumed variant matched and the opposite one
    did not.
    """

    check: str
    block_number: int
    assumed_variant: RuleVariant
    assumed: Optional[CheckResult] = None
    opposite: Optional[CheckResult] = None
    errors: List[ProcessingError] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return (
            not self.errors
            and self.assumed is not None
            and self.assumed.matches
            and self.opposite is not None
            and not self.opposite.matches
        )

    def add_violation(
        self,
        message: str,
        variant: RuleVariant,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
    ) -> None:
        self.errors.append(
            ProcessingError(
                source=self.check,
                message=message,
                severity=severity,
                context={
                    "block_number": self.block_number,
                    "variant": variant.label,
                },
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "check": self.check,
            "block_number": self.block_number,
            "assumed_variant": self.assumed_variant.label,
            "passed": self.passed,
            "results": [
                r.to_dict() for r in (self.assumed, self.opposite) if r
            ],
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class ConformanceSummary:
    """Summary of every property evaluated for one block."""

    block_number: int
    assumed_variant: RuleVariant
    elasticity: int
    reports: List[ActivationReport] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return bool(self.reports) and all(r.passed for r in self.reports)

    @property
    def errors(self) -> List[ProcessingError]:
        return [e for r in self.reports for e in r.errors]

    def has_critical_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.CRITICAL for e in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "block_number": self.block_number,
            "assumed_variant": self.assumed_variant.label,
            "elasticity": self.elasticity,
            "passed": self.passed,
            "reports": [r.to_dict() for r in self.reports],
            "error_count": len(self.errors),
        }
