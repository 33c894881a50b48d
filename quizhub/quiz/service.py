"""
Quiz maintenance and result history.

Listing, reading, updating, publishing and deleting quizzes, plus editing
the questions and options of an existing quiz. A whole new quiz is
written by QuizAggregateWriter, results only by ResultSubmissionEngine.

Stored results are never rewritten: a question or option that some
ResultAnswer points at cannot be deleted (ConflictError). Deleting the
whole quiz removes its results with it.
"""
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import selectinload

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


def _check_page(page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError("Page must be >= 1")
    max_page_size = current_app.config.get('MAX_PAGE_SIZE', 100)
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"Page size must be between 1 and {max_page_size}")


def _require_caller(caller_user_id: Optional[int]) -> int:
    if caller_user_id is None:
        raise UnauthorizedError("Authentication required")
    return caller_user_id


def _require_object(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


class QuizService:
    """Quiz listing and metadata maintenance."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def _filtered(self, stmt, search: Optional[str], owner_id: Optional[int],
                  is_published: Optional[bool]):
        if search and search.strip():
            stmt = stmt.where(Quiz.title.ilike(f"%{search.strip()}%"))
        if owner_id is not None:
            stmt = stmt.where(Quiz.owner_id == owner_id)
        if is_published is not None:
            stmt = stmt.where(Quiz.is_published == is_published)
        return stmt

    def list_quizzes(self, page: int = 1, page_size: int = 20, search: Optional[str] = None,
                     owner_id: Optional[int] = None,
                     is_published: Optional[bool] = None) -> List[tuple[Quiz, int]]:
        """Return ``(quiz, question_count)`` pairs ordered by quiz id."""
        _check_page(page, page_size)
        question_count = (
            db.select(func.count(Question.id))
            .where(Question.quiz_id == Quiz.id)
            .correlate(Quiz)
            .scalar_subquery()
        )
        stmt = self._filtered(db.select(Quiz, question_count), search, owner_id, is_published)
        stmt = stmt.order_by(Quiz.id).offset((page - 1) * page_size).limit(page_size)
        return [(quiz, count) for quiz, count in self.session.execute(stmt).all()]

    def count_quizzes(self, search: Optional[str] = None, owner_id: Optional[int] = None,
                      is_published: Optional[bool] = None) -> int:
        stmt = self._filtered(db.select(func.count(Quiz.id)), search, owner_id, is_published)
        return self.session.execute(stmt).scalar_one()

    def get_quiz(self, quiz_id: int) -> Quiz:
        quiz = self.session.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id} not found")
        return quiz

    def get_quiz_with_questions(self, quiz_id: int) -> tuple[Quiz, List[Question]]:
        """Quiz plus its questions (ascending id) with options loaded."""
        quiz = self.get_quiz(quiz_id)
        questions = self.session.execute(
            db.select(Question)
            .where(Question.quiz_id == quiz.id)
            .order_by(Question.id)
            .options(selectinload(Question.options))
        ).scalars().all()
        return quiz, questions

    def get_owned_quiz(self, quiz_id: int, caller_user_id: Optional[int]) -> Quiz:
        """
        Load a quiz the caller may modify.

        Quizzes without an owner can be maintained by any signed-in user.
        """
        caller = _require_caller(caller_user_id)
        quiz = self.get_quiz(quiz_id)
        if quiz.owner_id is not None and quiz.owner_id != caller:
            raise ForbiddenError("You do not own this quiz")
        return quiz

    def update_quiz(self, quiz_id: int, caller_user_id: Optional[int], data: dict) -> Quiz:
        """Update metadata only. Questions and options are left untouched."""
        quiz = self.get_owned_quiz(quiz_id, caller_user_id)
        data = _require_object(data)

        title = data.get('title')
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Quiz title is required")

        for key in ('subject_code', 'description', 'image_url'):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ValidationError(f"'{key}' must be a string")

        try:
            quiz.title = title.strip()
            if 'subject_code' in data:
                quiz.subject_code = (data.get('subject_code') or '').strip()
            if 'description' in data:
                quiz.description = (data.get('description') or '').strip() or None
            if 'image_url' in data:
                quiz.image_url = (data.get('image_url') or '').strip() or None

            is_published = data.get('is_published')
            if is_published is not None and bool(is_published) != quiz.is_published:
                quiz.is_published = bool(is_published)
                quiz.published_at = datetime.utcnow() if quiz.is_published else None

            quiz.updated_at = datetime.utcnow()
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        current_app.logger.info(f"Updated quiz {quiz.id}")
        return quiz

    def set_published(self, quiz_id: int, caller_user_id: Optional[int], published: bool) -> Quiz:
        quiz = self.get_owned_quiz(quiz_id, caller_user_id)
        if quiz.is_published != published:
            now = datetime.utcnow()
            quiz.is_published = published
            quiz.published_at = now if published else None
            quiz.updated_at = now
            self.session.commit()
        current_app.logger.info(f"{'Published' if published else 'Unpublished'} quiz {quiz_id}")
        return quiz

    def delete_quiz(self, quiz_id: int, caller_user_id: Optional[int]) -> None:
        """Delete the quiz with its questions, options and recorded results."""
        quiz = self.get_owned_quiz(quiz_id, caller_user_id)
        try:
            self.session.delete(quiz)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        current_app.logger.info(f"Deleted quiz {quiz_id}")

    # Questions and options

    def _clean_text(self, value, what: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{what} text is required")
        return value.strip()

    def _is_answered(self, column, value: int) -> bool:
        stmt = db.select(ResultAnswer.id).where(column == value).limit(1)
        return self.session.execute(stmt).first() is not None

    def _commit_structure(self, quiz: Quiz, action: str) -> None:
        quiz.updated_at = datetime.utcnow()
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            current_app.logger.exception(f"Error while trying to {action} in quiz {quiz.id}")
            raise

    def get_question(self, question_id: int, caller_user_id: Optional[int]) -> Question:
        """Load a question, with its correctness flags, for the owner of its quiz."""
        question = self.session.get(Question, question_id)
        if question is None:
            raise NotFoundError(f"Question {question_id} not found")
        self.get_owned_quiz(question.quiz_id, caller_user_id)
        return question

    def get_option(self, option_id: int, caller_user_id: Optional[int]) -> Option:
        option = self.session.get(Option, option_id)
        if option is None:
            raise NotFoundError(f"Option {option_id} not found")
        self.get_question(option.question_id, caller_user_id)
        return option

    def add_question(self, quiz_id: int, caller_user_id: Optional[int], entry: QuestionEntry) -> Question:
        """
        Append a question and its options to an existing quiz.

        The question text is required; blank options are dropped as on
        creation.
        """
        quiz = self.get_owned_quiz(quiz_id, caller_user_id)
        text = self._clean_text(entry.text, "Question")

        question = Question(quiz_id=quiz.id, text=text)
        for option_entry in entry.options:
            option_text = (option_entry.text or '').strip()
            if option_text:
                question.options.append(Option(text=option_text, is_correct=bool(option_entry.is_correct)))
        self.session.add(question)
        self._commit_structure(quiz, "add a question")

        current_app.logger.info(f"Added question {question.id} to quiz {quiz.id}")
        return question

    def update_question(self, question_id: int, caller_user_id: Optional[int], data: dict) -> Question:
        """Change the text of a question. Its options are edited one by one."""
        question = self.get_question(question_id, caller_user_id)
        data = _require_object(data)
        question.text = self._clean_text(data.get('text'), "Question")
        self._commit_structure(question.quiz, f"update question {question_id}")
        current_app.logger.info(f"Updated question {question_id}")
        return question

    def delete_question(self, question_id: int, caller_user_id: Optional[int]) -> None:
        """Delete a question with its options, unless a stored result answered it."""
        question = self.get_question(question_id, caller_user_id)
        if self._is_answered(ResultAnswer.question_id, question.id):
            raise ConflictError(f"Question {question_id} has recorded answers and cannot be deleted")
        quiz = question.quiz
        self.session.delete(question)
        self._commit_structure(quiz, f"delete question {question_id}")
        current_app.logger.info(f"Deleted question {question_id} from quiz {quiz.id}")

    def add_option(self, question_id: int, caller_user_id: Optional[int], entry: OptionEntry) -> Option:
        question = self.get_question(question_id, caller_user_id)
        option = Option(text=self._clean_text(entry.text, "Option"), is_correct=bool(entry.is_correct))
        question.options.append(option)
        self._commit_structure(question.quiz, f"add an option to question {question_id}")
        current_app.logger.info(f"Added option {option.id} to question {question_id}")
        return option

    def update_option(self, option_id: int, caller_user_id: Optional[int], data: dict) -> Option:
        """
        Update ``text`` and/or ``is_correct`` of an option.

        Results already stored keep the score they were given.
        """
        option = self.get_option(option_id, caller_user_id)
        data = _require_object(data)
        if 'text' in data:
            option.text = self._clean_text(data.get('text'), "Option")
        if 'is_correct' in data:
            if not isinstance(data['is_correct'], bool):
                raise ValidationError("'is_correct' must be a boolean")
            option.is_correct = data['is_correct']
        self._commit_structure(option.question.quiz, f"update option {option_id}")
        current_app.logger.info(f"Updated option {option_id}")
        return option

    def delete_option(self, option_id: int, caller_user_id: Optional[int]) -> None:
        option = self.get_option(option_id, caller_user_id)
        if self._is_answered(ResultAnswer.option_id, option.id):
            raise ConflictError(f"Option {option_id} was chosen in a recorded result and cannot be deleted")
        quiz = option.question.quiz
        self.session.delete(option)
        self._commit_structure(quiz, f"delete option {option_id}")
        current_app.logger.info(f"Deleted option {option_id}")


class ResultService:
    """Result history and deletion."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def list_results_for_user(self, user_id: Optional[int], page: int = 1,
                              page_size: int = 20) -> List[tuple[Result, Quiz]]:
        """The caller's results, newest first."""
        caller = _require_caller(user_id)
        _check_page(page, page_size)
        stmt = (
            db.select(Result, Quiz)
            .join(Quiz, Quiz.id == Result.quiz_id)
            .where(Result.user_id == caller)
            .order_by(Result.completed_at.desc(), Result.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return [(result, quiz) for result, quiz in self.session.execute(stmt).all()]

    def count_results_for_user(self, user_id: Optional[int]) -> int:
        caller = _require_caller(user_id)
        return self.session.execute(
            db.select(func.count(Result.id)).where(Result.user_id == caller)
        ).scalar_one()

    def list_results_for_quiz(self, quiz_id: int, caller_user_id: Optional[int],
                              page: int = 1, page_size: int = 20) -> tuple[Quiz, List[Result], int]:
        """All results recorded against a quiz; visible to the quiz owner only."""
        quiz = QuizService(self.session).get_owned_quiz(quiz_id, caller_user_id)
        _check_page(page, page_size)
        results = self.session.execute(
            db.select(Result)
            .where(Result.quiz_id == quiz.id)
            .order_by(Result.completed_at.desc(), Result.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars().all()
        total = self.session.execute(
            db.select(func.count(Result.id)).where(Result.quiz_id == quiz.id)
        ).scalar_one()
        return quiz, results, total

    def delete_result(self, result_id: int, caller_user_id: Optional[int]) -> None:
        """Delete a result together with its answers."""
        caller = _require_caller(caller_user_id)
        result = self.session.get(Result, result_id)
        if result is None:
            raise NotFoundError(f"Result {result_id} not found")
        if result.user_id != caller:
            raise ForbiddenError("You do not have access to this result")
        try:
            self.session.delete(result)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        current_app.logger.info(f"Deleted result {result_id}")
