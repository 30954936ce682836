"""Validation issue records shared by all validators."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ValidationError:
    """A single validation issue."""

    severity: str  # "error" | "warning"
    element_type: str
    element_id: str
    message: str
    check: str = ""

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "check": self.check,
            "element_type": self.element_type,
            "element_id": self.element_id,
            "message": self.message,
        }


@dataclass
class ValidationReport:
    """Outcome of a validation pass."""

    issues: list[ValidationError] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationError]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[ValidationError]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def failed_error_checks(self) -> set[str]:
        """Checks that produced at least one error."""
        return {i.check for i in self.errors}

    def exceeds(self, threshold: int) -> bool:
        """True if more checks failed with errors than the threshold tolerates.

        A check counts once however many elements it flagged; the
        per-element issues stay in the report as detail.
        """
        return len(self.failed_error_checks) > threshold

    def failed_checks(self) -> set[str]:
        return {i.check for i in self.issues}

    def to_dict(self) -> dict:
        return {
            "errors": len(self.errors),
            "failed_checks": sorted(self.failed_error_checks),
            "warnings": len(self.warnings),
            "details": [i.to_dict() for i in self.issues],
        }
