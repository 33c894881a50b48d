"""Rebuilds the review view of a stored result."""
from typing import Optional

from flask import current_app
from sqlalchemy.orm import selectinload

from quizhub import db
from quizhub.quiz.errors import ForbiddenError, NotFoundError, UnauthorizedError
from quizhub.quiz.mappers import full_result_view
from quizhub.quiz.models import Question, Quiz, Result, ResultAnswer


class ResultReconstructor:
    """Joins a result with its quiz structure and the stored answers."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get_full_result(self, result_id: int, caller_user_id: Optional[int]) -> dict:
        """
        Return ``{result, quiz, answers}`` for the caller's own result.

        Questions and options are always ordered by ascending id, whatever
        order the answers were stored in.
        """
        if caller_user_id is None:
            raise UnauthorizedError("Authentication required")

        result = self.session.get(Result, result_id)
        if result is None:
            raise NotFoundError(f"Result {result_id} not found")
        if result.user_id != caller_user_id:
            current_app.logger.warning(
                f"User {caller_user_id} tried to read result {result_id} owned by user {result.user_id}"
            )
            raise ForbiddenError("You do not have access to this result")

        quiz = self.session.get(Quiz, result.quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {result.quiz_id} not found")

        questions = self.session.execute(
            db.select(Question)
            .where(Question.quiz_id == quiz.id)
            .order_by(Question.id)
            .options(selectinload(Question.options))
        ).scalars().all()

        stored = self.session.execute(
            db.select(ResultAnswer.question_id, ResultAnswer.option_id)
            .where(ResultAnswer.result_id == result.id)
        ).all()
        answers = {row.question_id: row.option_id for row in stored}

        return full_result_view(result, quiz, questions, answers)
