from quiz_crafter.core.models import ExistingOption, NewOption
from quiz_crafter.core.validation import validate_question, validate_quiz_title


def _codes(errors):
    return [(error.field, error.code) for error in errors]


def _options(*texts, correct=0):
    return [
        NewOption(text=text, is_correct=index == correct, order_index=index)
        for index, text in enumerate(texts)
    ]


class TestQuizTitle:
    def test_valid_title(self):
        assert validate_quiz_title("  World capitals  ") == []

    def test_blank_title_is_required(self):
        assert _codes(validate_quiz_title("   ")) == [("title", "required")]

    def test_length_is_measured_after_trimming(self):
        assert validate_quiz_title("  " + "x" * 200 + "  ") == []
        errors = validate_quiz_title("x" * 201)
        assert _codes(errors) == [("title", "max_length")]
        assert errors[0].message == "Quiz title must be 200 characters or fewer."


class TestQuestion:
    def test_valid_question(self):
        assert validate_question("Capital of France?", _options("Lyon", "Paris", correct=1)) == []

    def test_text_checks(self):
        assert _codes(validate_question(" ", _options("a", "b"))) == [("text", "required")]
        assert _codes(validate_question("q" * 1201, _options("a", "b"))) == [("text", "max_length")]

    def test_option_count_bounds(self):
        assert ("options", "count") in _codes(validate_question("Q?", _options("a")))
        assert ("options", "count") in _codes(
            validate_question("Q?", _options("a", "b", "c", "d", "e", "f"))
        )
        assert validate_question("Q?", _options("a", "b", "c", "d", "e")) == []

    def test_option_text_checks_are_per_option(self):
        errors = validate_question("Q?", _options("ok", "  ", "o" * 501))
        assert _codes(errors) == [
            ("options[1].text", "required"),
            ("options[2].text", "max_length"),
        ]

    def test_duplicate_text_is_case_insensitive_and_trimmed(self):
        errors = validate_question("Q?", _options("Paris", " paris ", "Rome"))
        assert _codes(errors) == [("options[1].text", "duplicate")]

    def test_exactly_one_correct_option(self):
        none_correct = [NewOption("a", False, 0), NewOption("b", False, 1)]
        two_correct = [NewOption("a", True, 0), NewOption("b", True, 1)]
        assert _codes(validate_question("Q?", none_correct)) == [("options", "correct_count")]
        assert _codes(validate_question("Q?", two_correct)) == [("options", "correct_count")]

    def test_all_violations_are_reported_together(self):
        options = [NewOption("", False, 0)]
        assert _codes(validate_question("", options)) == [
            ("text", "required"),
            ("options", "count"),
            ("options[0].text", "required"),
            ("options", "correct_count"),
        ]

    def test_repeated_option_id_and_order_are_rejected(self):
        options = [
            ExistingOption("opt-1", "a", True, 0),
            ExistingOption("opt-1", "b", False, 0),
        ]
        assert _codes(validate_question("Q?", options)) == [
            ("options[1].id", "duplicate"),
            ("options[1].orderIndex", "duplicate"),
        ]
