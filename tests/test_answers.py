import pytest

from questflow.domain.forms.entities import FormDefinition, QuestionType
from questflow.domain.forms.errors import InvalidFormDefinitionError
from questflow.domain.submissions.answers import (
    ChoiceListAnswer,
    ScalarAnswer,
    decode_answer_value,
    decode_answers,
    encode_answers,
    validate_answers,
)
from questflow.domain.submissions.errors import MalformedAnswersError, MalformedSubmissionError
from tests.fakes import SURVEY_DEFINITION


class TestDecodeAnswers:
    def test_string_and_list_values(self):
        decoded = decode_answers({"q1": ["a", "b"], "q2": "x"})
        assert decoded == {"q1": ChoiceListAnswer(("a", "b")), "q2": ScalarAnswer("x")}

    def test_json_text_document(self):
        assert decode_answers('{"q2": "x"}') == {"q2": ScalarAnswer("x")}

    def test_entries_of_unknown_shape_are_dropped(self):
        decoded = decode_answers({"q1": ["a", 1], "q2": 3, "q3": None, "q4": "ok"})
        assert decoded == {"q4": ScalarAnswer("ok")}

    @pytest.mark.parametrize("raw", [["a"], "not json", "[1, 2]", 42, None])
    def test_non_object_document_raises(self, raw):
        with pytest.raises(MalformedAnswersError):
            decode_answers(raw)

    def test_decode_answer_value_rejects_mixed_list(self):
        assert decode_answer_value(["a", 2]) is None
        assert decode_answer_value(()) == ChoiceListAnswer(())


class TestValidateAnswers:
    def test_valid_document(self):
        assert validate_answers({"q1": ["a"], "q4": ""}) == {
            "q1": ChoiceListAnswer(("a",)),
            "q4": ScalarAnswer(""),
        }

    def test_bad_entry_rejects_whole_document(self):
        with pytest.raises(MalformedSubmissionError):
            validate_answers({"q1": ["a"], "q2": 1})

    def test_non_object_rejected(self):
        with pytest.raises(MalformedSubmissionError):
            validate_answers(["a"])

    def test_encode_keeps_wire_shape(self):
        answers = validate_answers({"q1": ["b", "a"], "q2": "x"})
        assert encode_answers(answers) == {"q1": ["b", "a"], "q2": "x"}


class TestFormDefinition:
    def test_from_document(self):
        definition = FormDefinition.from_document(SURVEY_DEFINITION)
        assert [q.id for q in definition.questions] == ["q1", "q2", "q3", "q4"]
        assert definition.get("q1").type == QuestionType.MULTI_CHOICE
        assert [o.id for o in definition.get("q3").options] == ["yes", "no"]
        assert "q4" in definition
        assert "zz" not in definition

    def test_unknown_type_rejected(self):
        with pytest.raises(InvalidFormDefinitionError):
            FormDefinition.from_document({"questions": [{"id": "q1", "type": "ranking"}]})

    def test_question_without_id_rejected(self):
        with pytest.raises(InvalidFormDefinitionError):
            FormDefinition.from_document({"questions": [{"type": "text_input"}]})

    def test_empty_document(self):
        assert FormDefinition.from_document({}).questions == ()
