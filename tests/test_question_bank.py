"""Tests for the fixed 60-question battery and option mapping."""

import pytest

from vgla_engine.engine import InvalidOptionError, question_bank
from vgla_engine.models.assessment import Dimension, Phase


class TestGenerateQuestions:
    """Tests for battery generation."""

    def test_sixty_questions_in_id_order(self):
        questions = question_bank.generate_questions()
        assert len(questions) == 60
        assert [q.id for q in questions] == list(range(1, 61))

    def test_phases_split_at_thirty(self):
        questions = question_bank.generate_questions()
        assert all(q.phase == Phase.LIKE for q in questions[:30])
        assert all(q.phase == Phase.DISLIKE for q in questions[30:])

    def test_dimensions_cycle_in_declaration_order(self):
        questions = question_bank.generate_questions()
        assert [q.dimension for q in questions[:5]] == [
            Dimension.VISION,
            Dimension.GOAL,
            Dimension.LOGIC,
            Dimension.ACTION,
            Dimension.VISION,
        ]
        # The dislike pass reuses the same scenarios
        assert questions[30].dimension == Dimension.VISION
        assert questions[31].dimension == Dimension.GOAL

    def test_generation_is_deterministic(self):
        assert question_bank.generate_questions() == question_bank.generate_questions()

    def test_returned_list_is_a_copy(self):
        questions = question_bank.generate_questions()
        questions.clear()
        assert len(question_bank.generate_questions()) == 60

    def test_get_question(self):
        assert question_bank.get_question(31).phase == Phase.DISLIKE
        with pytest.raises(KeyError):
            question_bank.get_question(0)
        with pytest.raises(KeyError):
            question_bank.get_question(61)


class TestOptions:
    """Tests for the four canonical options."""

    def test_four_options(self):
        options = question_bank.get_options()
        assert len(options) == 4
        assert len(set(options)) == 4

    def test_option_positions_map_to_dimensions(self):
        assert question_bank.get_dimension_for_option(0) == Dimension.VISION
        assert question_bank.get_dimension_for_option(1) == Dimension.GOAL
        assert question_bank.get_dimension_for_option(2) == Dimension.LOGIC
        assert question_bank.get_dimension_for_option(3) == Dimension.ACTION

    @pytest.mark.parametrize("index", [-1, 4, 10])
    def test_out_of_range_index_is_rejected(self, index):
        with pytest.raises(InvalidOptionError):
            question_bank.get_dimension_for_option(index)

    def test_invalid_option_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            question_bank.option_index("none of the above")

    def test_option_text_round_trip(self):
        for dimension in Dimension:
            text = question_bank.get_option_for_dimension(dimension)
            index = question_bank.option_index(text)
            assert question_bank.get_dimension_for_option(index) == dimension


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
