from questflow.domain.forms.entities import FormDefinition, QuestionType
from questflow.domain.stats.aggregation import aggregate_submissions
from tests.fakes import SURVEY_DEFINITION, make_record

MULTI_ONLY = FormDefinition.from_document(
    {
        "questions": [
            {
                "id": "q1",
                "type": "multi_choice",
                "title": "Q1",
                "options": [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}, {"id": "c", "text": "C"}],
            }
        ]
    }
)


def _counts(stats, question_id):
    return {o.option_id: o.count for o in stats.get(question_id).option_stats}


class TestAggregateSubmissions:
    def test_multi_choice_scenario(self):
        records = [
            make_record("1", {"q1": ["a", "b"]}),
            make_record("2", {"q1": ["b"]}),
            make_record("3", {"q1": []}),
        ]
        stats = aggregate_submissions(MULTI_ONLY, records)
        assert stats.total_submissions == 3
        assert _counts(stats, "q1") == {"a": 1, "b": 2, "c": 0}

    def test_every_option_listed_in_definition_order(self):
        stats = aggregate_submissions(MULTI_ONLY, [])
        assert stats.total_submissions == 0
        assert [(o.option_id, o.count) for o in stats.get("q1").option_stats] == [("a", 0), ("b", 0), ("c", 0)]

    def test_question_order_and_types(self):
        definition = FormDefinition.from_document(SURVEY_DEFINITION)
        stats = aggregate_submissions(definition, [])
        assert [s.question_id for s in stats.question_stats] == ["q1", "q2", "q3", "q4"]
        assert stats.get("q4").question_type == QuestionType.TEXT_INPUT
        assert stats.get("q4").option_stats == ()

    def test_single_judgment_and_text(self):
        definition = FormDefinition.from_document(SURVEY_DEFINITION)
        records = [
            make_record("1", {"q2": "x", "q3": "yes", "q4": "첫 번째"}),
            make_record("2", {"q2": "y", "q3": "yes", "q4": ""}),
            make_record("3", {"q2": "x", "q4": "세 번째"}),
        ]
        stats = aggregate_submissions(definition, records)
        assert _counts(stats, "q2") == {"x": 2, "y": 1}
        assert _counts(stats, "q3") == {"yes": 2, "no": 0}
        assert stats.get("q4").text_answers == ("첫 번째", "세 번째")

    def test_unknown_options_questions_and_shapes_ignored(self):
        definition = FormDefinition.from_document(SURVEY_DEFINITION)
        records = [
            make_record("1", {"q1": ["a", "zzz"], "q2": "nope", "q9": "x"}),
            make_record("2", {"q1": "a", "q2": ["x"], "q4": ["text"]}),
        ]
        stats = aggregate_submissions(definition, records)
        assert _counts(stats, "q1") == {"a": 1, "b": 0, "c": 0}
        assert _counts(stats, "q2") == {"x": 0, "y": 0}
        assert stats.get("q4").text_answers == ()

    def test_undecodable_records_counted_in_total_only(self):
        records = [
            make_record("1", {"q1": ["a"]}),
            make_record("2", "not json at all"),
            make_record("3", ["a", "b"]),
        ]
        stats = aggregate_submissions(MULTI_ONLY, records)
        assert stats.total_submissions == 3
        assert _counts(stats, "q1") == {"a": 1, "b": 0, "c": 0}

    def test_reaggregation_is_identical(self):
        definition = FormDefinition.from_document(SURVEY_DEFINITION)
        records = [
            make_record("1", {"q1": ["a", "c"], "q2": "x", "q4": "hello"}),
            make_record("2", {"q1": ["c"], "q3": "no"}),
        ]
        first = aggregate_submissions(definition, records)
        second = aggregate_submissions(definition, records)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_accepts_one_shot_iterables(self):
        stats = aggregate_submissions(MULTI_ONLY, (make_record(str(i), {"q1": ["c"]}) for i in range(4)))
        assert stats.total_submissions == 4
        assert _counts(stats, "q1")["c"] == 4

    def test_to_dict_shape(self):
        stats = aggregate_submissions(MULTI_ONLY, [make_record("1", {"q1": ["b"]})])
        assert stats.to_dict() == {
            "total_submissions": 1,
            "question_stats": [
                {
                    "question_id": "q1",
                    "question_type": "multi_choice",
                    "title": "Q1",
                    "option_stats": [
                        {"option_id": "a", "text": "A", "count": 0},
                        {"option_id": "b", "text": "B", "count": 1},
                        {"option_id": "c", "text": "C", "count": 0},
                    ],
                    "text_answers": [],
                }
            ],
        }
