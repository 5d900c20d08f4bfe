import pytest

from quiz_crafter.core.models import Direction, ExistingOption, NewOption
from quiz_crafter.core.services.quiz_repository import NotFoundError


def _texts(question):
    return [option.text for option in question.options]


def _order(quiz):
    return [(question.text, question.order_index) for question in quiz.questions]


class TestQuizzes:
    def test_create_then_get_round_trips_trimmed_fields(self, repository):
        created = repository.create_quiz("  Capitals  ", "  Europe only ")
        assert created.title == "Capitals"
        assert created.description == "Europe only"
        assert created.created_at == created.updated_at
        assert created.question_count == 0

        loaded = repository.get_quiz(created.id)
        assert loaded.title == "Capitals"
        assert loaded.description == "Europe only"
        assert loaded.questions == []

    def test_blank_description_round_trips_as_empty_string(self, repository):
        created = repository.create_quiz("Capitals", "   ")
        assert created.description == ""
        assert repository.get_quiz(created.id).description == ""

    def test_missing_description_is_stored_as_null(self, repository):
        created = repository.create_quiz("Capitals")
        assert repository.get_quiz(created.id).description is None

    def test_get_unknown_quiz_returns_none(self, repository):
        assert repository.get_quiz("missing") is None
        assert repository.quiz_exists("missing") is False

    def test_list_orders_by_recent_update_and_counts_questions(self, repository, make_question):
        first = repository.create_quiz("First")
        second = repository.create_quiz("Second")
        assert [quiz.id for quiz in repository.list_quizzes()] == [second.id, first.id]

        make_question(first.id)
        make_question(first.id, text="Capital of Italy?", texts=("Rome", "Milan"), correct=0)
        summaries = repository.list_quizzes()
        assert [quiz.id for quiz in summaries] == [first.id, second.id]
        assert [quiz.question_count for quiz in summaries] == [2, 0]

    def test_update_with_omitted_description_keeps_it(self, repository, quiz):
        updated = repository.update_quiz(quiz.id, " Renamed ")
        assert updated.title == "Renamed"
        assert updated.description == "European capitals"
        assert updated.created_at == quiz.created_at
        assert updated.updated_at > quiz.updated_at
        assert repository.get_quiz(quiz.id).description == "European capitals"

    def test_update_with_explicit_null_or_blank_description_clears_it(self, repository, quiz):
        assert repository.update_quiz(quiz.id, "Capitals", None).description is None
        repository.update_quiz(quiz.id, "Capitals", "Again")
        assert repository.update_quiz(quiz.id, "Capitals", "  ").description == ""
        assert repository.get_quiz(quiz.id).description == ""

    def test_update_reports_question_count(self, repository, quiz, make_question):
        make_question(quiz.id)
        assert repository.update_quiz(quiz.id, "Capitals").question_count == 1

    def test_update_unknown_quiz_raises_not_found(self, repository):
        with pytest.raises(NotFoundError) as excinfo:
            repository.update_quiz("missing", "Title")
        assert excinfo.value.field == "id"

    def test_delete_is_idempotent(self, repository, quiz):
        assert repository.delete_quiz(quiz.id) is True
        assert repository.delete_quiz(quiz.id) is False
        assert repository.get_quiz(quiz.id) is None

    def test_delete_cascades_to_questions_and_options(self, repository, database, quiz, make_question):
        make_question(quiz.id)
        repository.delete_quiz(quiz.id)
        with database.connect() as conn:
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM questions").scalar_one() == 0
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM options").scalar_one() == 0


class TestSaveQuestion:
    def test_insert_assigns_increasing_order_index(self, repository, quiz, make_question):
        first = make_question(quiz.id)
        second = make_question(quiz.id, text="Capital of Spain?", texts=("Madrid", "Seville"), correct=0)
        assert (first.order_index, second.order_index) == (0, 1)
        assert first.quiz_id == quiz.id
        assert _texts(first) == ["Lyon", "Paris", "Nice"]
        assert [option.is_correct for option in first.options] == [False, True, False]

    def test_insert_refreshes_quiz_timestamp(self, repository, quiz, make_question):
        question = make_question(quiz.id)
        stored = repository.get_quiz(quiz.id)
        assert stored.updated_at == question.updated_at
        assert stored.updated_at > quiz.updated_at

    def test_next_order_index_follows_maximum(self, repository, quiz, make_question):
        make_question(quiz.id, text="A?")
        make_question(quiz.id, text="B?")
        c = make_question(quiz.id, text="C?")
        repository.reorder_question(quiz.id, c.id, Direction.UP)
        d = make_question(quiz.id, text="D?")
        assert d.order_index == 3

    def test_update_keeps_order_index_and_reconciles_options(self, repository, quiz, make_question):
        original = make_question(quiz.id, texts=("Lyon", "Paris", "Nice"), correct=1)
        lyon, paris, nice = original.options

        saved = repository.save_question(
            quiz.id,
            original.id,
            "  Capital city of France?  ",
            [
                ExistingOption(id=paris.id, text="Paris (edited)", is_correct=True, order_index=0),
                NewOption(text="Marseille", is_correct=False, order_index=1),
            ],
        )

        assert saved.id == original.id
        assert saved.text == "Capital city of France?"
        assert saved.order_index == original.order_index
        assert saved.created_at == original.created_at
        assert saved.updated_at > original.updated_at
        assert _texts(saved) == ["Paris (edited)", "Marseille"]
        assert saved.options[0].id == paris.id
        assert saved.options[1].id not in {lyon.id, paris.id, nice.id}

        stored = repository.get_quiz(quiz.id).questions[0]
        assert {option.id for option in stored.options} == {option.id for option in saved.options}

    def test_caller_supplied_unknown_question_id_is_inserted(self, repository, quiz):
        saved = repository.save_question(
            quiz.id,
            "client-generated-id",
            "Q?",
            [NewOption("a", True, 0), NewOption("b", False, 1)],
        )
        assert saved.id == "client-generated-id"
        assert saved.order_index == 0

    def test_question_of_another_quiz_is_not_found(self, repository, quiz, make_question):
        other = repository.create_quiz("Other")
        foreign = make_question(other.id)
        with pytest.raises(NotFoundError) as excinfo:
            repository.save_question(quiz.id, foreign.id, "Q?", [NewOption("a", True, 0), NewOption("b", False, 1)])
        assert excinfo.value.field == "questionId"
        assert repository.get_quiz(other.id).questions[0].text == foreign.text

    def test_unknown_existing_option_aborts_without_writes(self, repository, quiz, make_question):
        original = make_question(quiz.id)
        before = repository.get_quiz(quiz.id)

        with pytest.raises(NotFoundError) as excinfo:
            repository.save_question(
                quiz.id,
                original.id,
                "Changed?",
                [
                    NewOption("Brand new", True, 0),
                    ExistingOption("not-an-option", "b", False, 1),
                ],
            )

        assert excinfo.value.field == "options[1].id"
        assert repository.get_quiz(quiz.id) == before

    def test_existing_option_on_new_question_is_not_found(self, repository, quiz, make_question):
        other_question = make_question(quiz.id)
        with pytest.raises(NotFoundError):
            repository.save_question(
                quiz.id,
                None,
                "New?",
                [
                    ExistingOption(other_question.options[0].id, "steal", True, 0),
                    NewOption("b", False, 1),
                ],
            )
        assert len(repository.get_quiz(quiz.id).questions) == 1


class TestReorderQuestion:
    @pytest.fixture
    def three_questions(self, repository, quiz, make_question):
        return [make_question(quiz.id, text=text) for text in ("A?", "B?", "C?")]

    def test_moving_first_question_up_is_a_noop(self, repository, quiz, three_questions):
        before = repository.get_quiz(quiz.id)
        after = repository.reorder_question(quiz.id, three_questions[0].id, Direction.UP)
        assert after == before

    def test_moving_last_question_down_is_a_noop(self, repository, quiz, three_questions):
        before = repository.get_quiz(quiz.id)
        assert repository.reorder_question(quiz.id, three_questions[2].id, Direction.DOWN) == before

    def test_moving_up_swaps_only_with_previous(self, repository, quiz, three_questions):
        before = repository.get_quiz(quiz.id)
        after = repository.reorder_question(quiz.id, three_questions[1].id, Direction.UP)
        assert _order(after) == [("B?", 0), ("A?", 1), ("C?", 2)]
        assert after.updated_at > before.updated_at

    def test_moving_down_swaps_with_next(self, repository, quiz, three_questions):
        after = repository.reorder_question(quiz.id, three_questions[0].id, Direction.DOWN)
        assert _order(after) == [("B?", 0), ("A?", 1), ("C?", 2)]

    def test_unknown_question_is_not_found(self, repository, quiz, three_questions):
        with pytest.raises(NotFoundError) as excinfo:
            repository.reorder_question(quiz.id, "missing", Direction.UP)
        assert excinfo.value.field == "questionId"


class TestReorderOption:
    def test_swap_refreshes_question_and_quiz(self, repository, quiz, make_question):
        question = make_question(quiz.id, texts=("Lyon", "Paris", "Nice"))
        before = repository.get_quiz(quiz.id)

        moved = repository.reorder_option(quiz.id, question.id, question.options[2].id, Direction.UP)

        assert _texts(moved) == ["Lyon", "Nice", "Paris"]
        assert [option.order_index for option in moved.options] == [0, 1, 2]
        assert moved.updated_at > question.updated_at
        assert repository.get_quiz(quiz.id).updated_at > before.updated_at

    def test_out_of_bounds_move_is_a_noop(self, repository, quiz, make_question):
        question = make_question(quiz.id)
        moved = repository.reorder_option(quiz.id, question.id, question.options[0].id, Direction.UP)
        assert moved == question

    def test_unknown_option_is_not_found(self, repository, quiz, make_question):
        question = make_question(quiz.id)
        with pytest.raises(NotFoundError) as excinfo:
            repository.reorder_option(quiz.id, question.id, "missing", Direction.DOWN)
        assert excinfo.value.field == "optionId"

    def test_question_outside_quiz_is_not_found(self, repository, quiz, make_question):
        other = repository.create_quiz("Other")
        question = make_question(other.id)
        with pytest.raises(NotFoundError) as excinfo:
            repository.reorder_option(quiz.id, question.id, question.options[0].id, Direction.DOWN)
        assert excinfo.value.field == "questionId"


class TestUnknownQuiz:
    def test_save_question(self, repository):
        with pytest.raises(NotFoundError) as excinfo:
            repository.save_question("missing", None, "Q?", [NewOption("a", True, 0), NewOption("b", False, 1)])
        assert excinfo.value.field == "quizId"

    def test_save_question_after_quiz_was_deleted(self, repository, database, quiz):
        repository.delete_quiz(quiz.id)
        with pytest.raises(NotFoundError) as excinfo:
            repository.save_question(quiz.id, None, "Q?", [NewOption("a", True, 0), NewOption("b", False, 1)])
        assert excinfo.value.field == "quizId"
        with database.connect() as conn:
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM questions").scalar_one() == 0

    def test_reorder_question(self, repository):
        with pytest.raises(NotFoundError) as excinfo:
            repository.reorder_question("missing", "q", Direction.UP)
        assert excinfo.value.field == "quizId"

    def test_reorder_option(self, repository):
        with pytest.raises(NotFoundError) as excinfo:
            repository.reorder_option("missing", "q", "o", Direction.DOWN)
        assert excinfo.value.field == "quizId"
