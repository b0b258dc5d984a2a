"""Tests for two-stage snapshot validation."""

from datetime import timedelta

import pytest

from vgla_engine.engine import TestSession, question_bank
from vgla_engine.models.assessment import Dimension, Phase, Response
from vgla_engine.validation import SnapshotValidator


@pytest.fixture
def validator():
    return SnapshotValidator()


@pytest.fixture
def snapshot(clock):
    session = TestSession(clock=clock)
    session.start()
    for dimension in (Dimension.VISION, Dimension.GOAL, Dimension.LOGIC):
        clock.advance(seconds=10)
        session.select_option(question_bank.get_option_for_dimension(dimension))
    return session.to_snapshot()


def issue_types(result) -> set[str]:
    return {issue.issue_type for issue in result.issues}


class TestSchemaStage:
    """Stage 1: does the payload parse?"""

    def test_valid_json(self, validator, snapshot):
        result = validator.validate(snapshot.model_dump_json())
        assert result.is_valid
        assert result.can_resume
        assert result.snapshot == snapshot

    def test_garbage(self, validator):
        result = validator.validate("{not json")
        assert not result.schema_valid
        assert not result.is_valid
        assert result.snapshot is None
        assert issue_types(result) == {"malformed"}

    def test_out_of_range_index(self, validator, snapshot):
        payload = snapshot.model_dump(mode="json")
        payload["question_index"] = 60
        result = validator.validate(payload)
        assert not result.schema_valid
        assert result.error_count == 1

    def test_missing_test_id(self, validator, snapshot):
        payload = snapshot.model_dump(mode="json")
        del payload["test_id"]
        assert not validator.validate(payload).is_valid


class TestSemanticStage:
    """Stage 2: is the recorded progress coherent?"""

    def test_duplicate_question(self, validator, snapshot):
        duplicated = snapshot.model_copy(update={
            "responses": [*snapshot.responses, snapshot.responses[0]],
        })
        result = validator.validate(duplicated)
        assert result.schema_valid
        assert not result.semantic_valid
        assert "duplicate" in issue_types(result)

    def test_unknown_option(self, validator, snapshot):
        bad = Response(
            question_id=4,
            selected_option="an option that was never offered",
            dimension=Dimension.ACTION,
            timestamp=snapshot.last_updated_time,
        )
        result = validator.validate(snapshot.model_copy(update={
            "responses": [*snapshot.responses, bad],
        }))
        assert "unknown_option" in issue_types(result)
        assert not result.can_resume

    def test_dimension_mismatch(self, validator, snapshot):
        bad = Response(
            question_id=4,
            selected_option=question_bank.get_option_for_dimension(Dimension.VISION),
            dimension=Dimension.ACTION,
            timestamp=snapshot.last_updated_time,
        )
        result = validator.validate(snapshot.model_copy(update={
            "responses": [*snapshot.responses, bad],
        }))
        assert not result.is_valid
        assert "inconsistent" in issue_types(result)

    def test_dislike_phase_without_question_thirty(self, validator, snapshot):
        result = validator.validate(snapshot.model_copy(update={"phase": Phase.DISLIKE}))
        assert not result.is_valid

    def test_last_update_before_start(self, validator, snapshot):
        result = validator.validate(snapshot.model_copy(update={
            "last_updated_time": snapshot.start_time - timedelta(minutes=1),
        }))
        assert not result.is_valid

    def test_future_response_is_only_a_warning(self, validator, snapshot):
        late = snapshot.responses[0].model_copy(update={
            "timestamp": snapshot.last_updated_time + timedelta(minutes=5),
        })
        result = validator.validate(snapshot.model_copy(update={
            "responses": [late, *snapshot.responses[1:]],
        }))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_completed_snapshot_is_valid_but_not_resumable(self, validator, snapshot):
        result = validator.validate(snapshot.model_copy(update={"is_completed": True}))
        assert result.is_valid
        assert not result.can_resume


class TestSummary:
    """Tests for get_summary()."""

    def test_valid(self, validator, snapshot):
        assert validator.get_summary(validator.validate(snapshot)) == "Saved progress is valid."

    def test_invalid_lists_errors(self, validator):
        summary = validator.get_summary(validator.validate("{}"))
        assert summary.startswith("Saved progress cannot be resumed:")
        assert "test_id" in summary or "Field required" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
