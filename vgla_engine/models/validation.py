"""Validation result models for persisted snapshots."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from vgla_engine.models.assessment import SessionSnapshot, utc_now


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'malformed', 'duplicate', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage snapshot validation.

    Stage 1: Schema validation (does it parse into a SessionSnapshot?)
    Stage 2: Semantic validation (is the recorded progress coherent?)
    """

    validated_at: datetime = Field(default_factory=utc_now)

    schema_valid: bool
    semantic_valid: bool

    snapshot: Optional[SessionSnapshot] = Field(
        default=None,
        description="Parsed snapshot, present when schema validation passed"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and self.semantic_valid

    @property
    def can_resume(self) -> bool:
        return self.is_valid and self.snapshot is not None and not self.snapshot.is_completed

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
