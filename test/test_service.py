"""
Test cases for quiz and result maintenance operations.
"""
import pytest

from quizhub import db
from quizhub.quiz.aggregate_writer import OptionEntry, QuestionEntry
from quizhub.quiz.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from quizhub.quiz.models import Option, Question, Quiz, Result, ResultAnswer
from quizhub.quiz.scoring import ResultSubmissionEngine
from quizhub.quiz.service import QuizService, ResultService


def _count(model):
    return db.session.execute(db.select(db.func.count(model.id))).scalar_one()


class TestListQuizzes:
    """Test cases for listing and counting quizzes."""

    def test_lists_with_question_counts(self, ctx, users, quiz_factory):
        first = quiz_factory(owner_id=users['alice'], title='Algebra')
        second = quiz_factory(owner_id=users['bob'], title='Biology', questions=[('Only', [('A', True)])])

        rows = QuizService().list_quizzes()

        assert [(quiz.id, count) for quiz, count in rows] == [
            (first['quiz_id'], 2),
            (second['quiz_id'], 1),
        ]
        assert QuizService().count_quizzes() == 2

    def test_filters(self, ctx, users, quiz_factory):
        quiz_factory(owner_id=users['alice'], title='Algebra basics')
        quiz_factory(owner_id=users['bob'], title='Linear algebra')
        published = quiz_factory(owner_id=users['bob'], title='Biology')
        QuizService().set_published(published['quiz_id'], users['bob'], True)

        service = QuizService()
        assert service.count_quizzes(search='algebra') == 2
        assert service.count_quizzes(owner_id=users['bob']) == 2
        assert service.count_quizzes(is_published=True) == 1
        assert service.count_quizzes(owner_id=users['bob'], is_published=False) == 1
        titles = [quiz.title for quiz, _ in service.list_quizzes(search='ALGEBRA')]
        assert titles == ['Algebra basics', 'Linear algebra']

    def test_pagination(self, ctx, quiz_factory):
        ids = [quiz_factory(title=f'Quiz {i}')['quiz_id'] for i in range(5)]

        page = QuizService().list_quizzes(page=2, page_size=2)

        assert [quiz.id for quiz, _ in page] == ids[2:4]

    @pytest.mark.parametrize('page,page_size', [(0, 10), (1, 0), (1, 1000)])
    def test_bad_page_arguments(self, ctx, page, page_size):
        with pytest.raises(ValidationError):
            QuizService().list_quizzes(page=page, page_size=page_size)


class TestQuizMaintenance:
    """Test cases for update, publish and delete."""

    def test_get_missing_quiz(self, ctx):
        with pytest.raises(NotFoundError):
            QuizService().get_quiz(404)

    def test_update_metadata(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])

        updated = QuizService().update_quiz(quiz['quiz_id'], users['alice'], {
            'title': '  Renamed  ',
            'description': 'Now with a description',
            'is_published': True,
        })

        assert updated.title == 'Renamed'
        assert updated.description == 'Now with a description'
        assert updated.subject_code == 'TST100'
        assert updated.is_published is True
        assert updated.published_at is not None
        assert updated.updated_at is not None
        assert updated.get_question_count() == 2

    def test_update_requires_title(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ValidationError):
            QuizService().update_quiz(quiz['quiz_id'], users['alice'], {'title': '  '})

    def test_update_rejects_non_string_fields(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ValidationError):
            QuizService().update_quiz(quiz['quiz_id'], users['alice'], {'title': 'Ok', 'description': 7})

    def test_update_by_other_user_forbidden(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ForbiddenError):
            QuizService().update_quiz(quiz['quiz_id'], users['bob'], {'title': 'Hijacked'})
        assert QuizService().get_quiz(quiz['quiz_id']).title == 'Sample Quiz'

    def test_update_anonymous(self, ctx, quiz_factory):
        quiz = quiz_factory()
        with pytest.raises(UnauthorizedError):
            QuizService().update_quiz(quiz['quiz_id'], None, {'title': 'Nope'})

    def test_ownerless_quiz_editable_by_any_user(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=None)
        updated = QuizService().update_quiz(quiz['quiz_id'], users['bob'], {'title': 'Adopted'})
        assert updated.title == 'Adopted'

    def test_publish_and_unpublish(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        service = QuizService()

        published = service.set_published(quiz['quiz_id'], users['alice'], True)
        assert published.is_published is True
        assert published.published_at is not None

        unpublished = service.set_published(quiz['quiz_id'], users['alice'], False)
        assert unpublished.is_published is False
        assert unpublished.published_at is None

    def test_delete_cascades(self, ctx, users, quiz_factory):
        """Deleting a quiz removes questions, options, results and answers."""
        quiz = quiz_factory(owner_id=users['alice'])
        kept = quiz_factory(owner_id=users['alice'], title='Kept')
        q1, q2 = quiz['questions']
        ResultSubmissionEngine().submit_result(
            quiz['quiz_id'], users['bob'], {q1['id']: q1['correct'], q2['id']: q2['wrong']}
        )

        QuizService().delete_quiz(quiz['quiz_id'], users['alice'])

        assert db.session.get(Quiz, quiz['quiz_id']) is None
        assert db.session.get(Quiz, kept['quiz_id']) is not None
        assert _count(Question) == 2
        assert _count(Option) == 4
        assert _count(Result) == 0
        assert _count(ResultAnswer) == 0

    def test_delete_by_other_user_forbidden(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ForbiddenError):
            QuizService().delete_quiz(quiz['quiz_id'], users['bob'])
        assert _count(Quiz) == 1


class TestQuestionEditing:
    """Test cases for editing questions and options of an existing quiz."""

    def test_add_question_to_empty_quiz(self, ctx, users, quiz_factory):
        """An empty quiz can be completed after creation and then taken."""
        quiz = quiz_factory(owner_id=users['alice'], questions=[])

        question = QuizService().add_question(quiz['quiz_id'], users['alice'], QuestionEntry(
            text='  Largest planet?  ',
            options=[OptionEntry('Jupiter', True), OptionEntry('Mars'), OptionEntry('   ')],
        ))

        assert question.quiz_id == quiz['quiz_id']
        assert question.text == 'Largest planet?'
        assert [(o.text, o.is_correct) for o in question.options] == [('Jupiter', True), ('Mars', False)]
        assert db.session.get(Quiz, quiz['quiz_id']).updated_at is not None

        correct = question.options[0].id
        summary = ResultSubmissionEngine().submit_result(quiz['quiz_id'], users['bob'], {question.id: correct})
        assert (summary.correct_count, summary.total_questions) == (1, 1)

    def test_add_question_requires_text(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ValidationError):
            QuizService().add_question(quiz['quiz_id'], users['alice'], QuestionEntry(text='   '))
        assert _count(Question) == 2

    def test_add_question_by_other_user_forbidden(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ForbiddenError):
            QuizService().add_question(quiz['quiz_id'], users['bob'], QuestionEntry(text='Sneaky'))
        assert _count(Question) == 2

    def test_get_question_owner_only(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        question_id = quiz['questions'][0]['id']

        assert QuizService().get_question(question_id, users['alice']).id == question_id
        with pytest.raises(ForbiddenError):
            QuizService().get_question(question_id, users['bob'])
        with pytest.raises(NotFoundError):
            QuizService().get_question(9999, users['alice'])

    def test_update_question_text(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        question_id = quiz['questions'][0]['id']

        question = QuizService().update_question(question_id, users['alice'], {'text': 'What is 2 + 3?'})

        assert question.text == 'What is 2 + 3?'
        assert len(question.options) == 2

    @pytest.mark.parametrize('data', [{}, {'text': ''}, {'text': 5}, ['text']])
    def test_update_question_rejects_bad_input(self, ctx, users, quiz_factory, data):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ValidationError):
            QuizService().update_question(quiz['questions'][0]['id'], users['alice'], data)

    def test_delete_unanswered_question(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        q1, q2 = quiz['questions']
        ResultSubmissionEngine().submit_result(quiz['quiz_id'], users['bob'], {q1['id']: q1['correct']})

        QuizService().delete_question(q2['id'], users['alice'])

        assert db.session.get(Question, q2['id']) is None
        assert _count(Option) == 2
        assert _count(ResultAnswer) == 1

    def test_delete_answered_question_rejected(self, ctx, users, quiz_factory):
        """Stored results keep every question they answered."""
        quiz = quiz_factory(owner_id=users['alice'])
        q1 = quiz['questions'][0]
        ResultSubmissionEngine().submit_result(quiz['quiz_id'], users['bob'], {q1['id']: q1['wrong']})

        with pytest.raises(ConflictError) as excinfo:
            QuizService().delete_question(q1['id'], users['alice'])

        assert excinfo.value.status_code == 409
        assert db.session.get(Question, q1['id']) is not None
        assert _count(ResultAnswer) == 1

    def test_add_and_update_option(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        question = quiz['questions'][0]
        service = QuizService()

        option = service.add_option(question['id'], users['alice'], OptionEntry(' 22 ', False))
        assert option.question_id == question['id']
        assert option.text == '22'

        updated = service.update_option(option.id, users['alice'], {'text': '2 + 2', 'is_correct': True})
        assert (updated.text, updated.is_correct) == ('2 + 2', True)
        assert [o.id for o in service.get_question(question['id'], users['alice']).options][-1] == option.id

    def test_update_option_keeps_stored_scores(self, ctx, users, quiz_factory):
        """Changing which option is correct does not rescore existing results."""
        quiz = quiz_factory(owner_id=users['alice'])
        q1, q2 = quiz['questions']
        summary = ResultSubmissionEngine().submit_result(
            quiz['quiz_id'], users['bob'], {q1['id']: q1['correct'], q2['id']: q2['correct']}
        )

        QuizService().update_option(q1['correct'], users['alice'], {'is_correct': False})

        assert db.session.get(Result, summary.result_id).correct_count == 2

    @pytest.mark.parametrize('data', [{'text': '  '}, {'is_correct': 'yes'}])
    def test_update_option_rejects_bad_input(self, ctx, users, quiz_factory, data):
        quiz = quiz_factory(owner_id=users['alice'])
        with pytest.raises(ValidationError):
            QuizService().update_option(quiz['questions'][0]['options'][0], users['alice'], data)

    def test_option_edits_owner_only(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        question = quiz['questions'][0]
        service = QuizService()
        with pytest.raises(ForbiddenError):
            service.add_option(question['id'], users['bob'], OptionEntry('Nope'))
        with pytest.raises(ForbiddenError):
            service.update_option(question['options'][0], users['bob'], {'text': 'Nope'})
        with pytest.raises(ForbiddenError):
            service.delete_option(question['options'][0], users['bob'])
        with pytest.raises(NotFoundError):
            service.get_option(9999, users['alice'])

    def test_delete_option(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        q1 = quiz['questions'][0]
        ResultSubmissionEngine().submit_result(quiz['quiz_id'], users['bob'], {q1['id']: q1['correct']})

        QuizService().delete_option(q1['wrong'], users['alice'])
        assert db.session.get(Option, q1['wrong']) is None

        with pytest.raises(ConflictError):
            QuizService().delete_option(q1['correct'], users['alice'])
        assert db.session.get(Option, q1['correct']) is not None


class TestResultService:
    """Test cases for result history."""

    def test_user_results_newest_first(self, ctx, users, quiz_factory):
        quiz = quiz_factory(title='History')
        engine = ResultSubmissionEngine()
        first = engine.submit_result(quiz['quiz_id'], users['alice'], {})
        second = engine.submit_result(quiz['quiz_id'], users['alice'], {})
        engine.submit_result(quiz['quiz_id'], users['bob'], {})

        service = ResultService()
        rows = service.list_results_for_user(users['alice'])

        assert [result.id for result, _ in rows] == [second.result_id, first.result_id]
        assert all(q.title == 'History' for _, q in rows)
        assert service.count_results_for_user(users['alice']) == 2
        assert service.count_results_for_user(users['bob']) == 1

    def test_user_results_require_caller(self, ctx):
        with pytest.raises(UnauthorizedError):
            ResultService().list_results_for_user(None)

    def test_quiz_results_owner_only(self, ctx, users, quiz_factory):
        quiz = quiz_factory(owner_id=users['alice'])
        ResultSubmissionEngine().submit_result(quiz['quiz_id'], users['bob'], {})

        loaded, results, total = ResultService().list_results_for_quiz(quiz['quiz_id'], users['alice'])
        assert loaded.id == quiz['quiz_id']
        assert total == 1
        assert results[0].user_id == users['bob']

        with pytest.raises(ForbiddenError):
            ResultService().list_results_for_quiz(quiz['quiz_id'], users['bob'])

    def test_delete_result(self, ctx, users, quiz_factory):
        quiz = quiz_factory()
        q1 = quiz['questions'][0]
        summary = ResultSubmissionEngine().submit_result(
            quiz['quiz_id'], users['alice'], {q1['id']: q1['correct']}
        )

        with pytest.raises(ForbiddenError):
            ResultService().delete_result(summary.result_id, users['bob'])

        ResultService().delete_result(summary.result_id, users['alice'])
        assert _count(Result) == 0
        assert _count(ResultAnswer) == 0
        assert _count(Question) == 2

    def test_delete_missing_result(self, ctx, users):
        with pytest.raises(NotFoundError):
            ResultService().delete_result(1, users['alice'])
