"""
Two-Stage Snapshot Validation

DESIGN DECISION: A persisted snapshot is untrusted input. Before a session
is resumed from it, it goes through two stages:

STAGE 1 - SCHEMA VALIDATION:
- JSON decoding
- Type checking and required fields (via the SessionSnapshot model)
- Range checks (question index, question ids)

STAGE 2 - SEMANTIC VALIDATION:
- One response per question
- Recorded option text and dimension agree with the question bank
- Phase agrees with the recorded answers
- Timestamps are ordered

A snapshot that fails either stage is treated as "no prior progress".
Validation NEVER repairs a snapshot.
"""

from typing import Optional, Union

from pydantic import ValidationError

from vgla_engine.engine import question_bank
from vgla_engine.engine.errors import InvalidOptionError
from vgla_engine.models.assessment import (
    QUESTIONS_PER_PHASE,
    Phase,
    SessionSnapshot,
)
from vgla_engine.models.validation import ValidationIssue, ValidationResult


SnapshotPayload = Union[str, bytes, dict, SessionSnapshot]


class SnapshotValidator:
    """Validates persisted session snapshots before resumption."""

    def _validate_schema(
        self,
        payload: SnapshotPayload,
    ) -> tuple[Optional[SessionSnapshot], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (parsed_snapshot_or_None, list_of_issues)
        """
        if isinstance(payload, SessionSnapshot):
            return payload, []

        try:
            if isinstance(payload, (str, bytes)):
                snapshot = SessionSnapshot.model_validate_json(payload)
            else:
                snapshot = SessionSnapshot.model_validate(payload)
        except ValidationError as e:
            issues = [
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "snapshot",
                    issue_type="malformed",
                    message=error["msg"],
                    severity="error",
                )
                for error in e.errors()
            ]
            return None, issues

        return snapshot, []

    def _validate_semantic(
        self,
        snapshot: SessionSnapshot,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        seen_ids = set()

        for response in snapshot.responses:
            if response.question_id in seen_ids:
                issues.append(ValidationIssue(
                    field="responses",
                    issue_type="duplicate",
                    message=f"Question {response.question_id} has more than one response",
                    severity="error",
                ))
            seen_ids.add(response.question_id)

            try:
                index = question_bank.option_index(response.selected_option)
            except InvalidOptionError:
                issues.append(ValidationIssue(
                    field="responses",
                    issue_type="unknown_option",
                    message=f"Question {response.question_id} has an unknown option",
                    severity="error",
                ))
                continue

            if question_bank.get_dimension_for_option(index) != response.dimension:
                issues.append(ValidationIssue(
                    field="responses",
                    issue_type="inconsistent",
                    message=(
                        f"Question {response.question_id}: recorded dimension "
                        f"{response.dimension.value} does not match the selected option"
                    ),
                    severity="error",
                ))

            if response.timestamp > snapshot.last_updated_time:
                issues.append(ValidationIssue(
                    field="responses",
                    issue_type="suspicious_date",
                    message=f"Question {response.question_id} was answered after the last update",
                    severity="warning",
                ))

        # The dislike phase is only entered by answering the last like question
        if snapshot.phase == Phase.DISLIKE and QUESTIONS_PER_PHASE not in seen_ids:
            issues.append(ValidationIssue(
                field="phase",
                issue_type="inconsistent",
                message="Dislike phase reached without answering the last like question",
                severity="error",
            ))

        if snapshot.phase == Phase.LIKE and any(
            question_id > QUESTIONS_PER_PHASE for question_id in seen_ids
        ):
            issues.append(ValidationIssue(
                field="phase",
                issue_type="inconsistent",
                message="Dislike answers recorded while still in the like phase",
                severity="warning",
            ))

        if snapshot.last_updated_time < snapshot.start_time:
            issues.append(ValidationIssue(
                field="last_updated_time",
                issue_type="inconsistent",
                message="Last update is before the test start",
                severity="error",
            ))

        if snapshot.is_completed:
            issues.append(ValidationIssue(
                field="is_completed",
                issue_type="completed",
                message="Snapshot belongs to a completed test",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, payload: SnapshotPayload) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Never raises for bad input; problems are reported as issues.
        """
        snapshot, issues = self._validate_schema(payload)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if snapshot is not None:
            semantic_valid, semantic_issues = self._validate_semantic(snapshot)
            issues.extend(semantic_issues)

        return ValidationResult(
            schema_valid=snapshot is not None,
            semantic_valid=semantic_valid,
            snapshot=snapshot,
            issues=issues,
        )

    def get_summary(self, result: ValidationResult) -> str:
        """Short summary suitable for logs and the resume prompt."""
        if result.is_valid and not result.warnings:
            return "Saved progress is valid."

        lines = []
        if not result.is_valid:
            lines.append("Saved progress cannot be resumed:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"  - {issue.message}")

        if result.warnings:
            lines.append("Warnings:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
