"""
Result submission and scoring.

The engine scores an answer set against the quiz definition it reads
inside the same transaction that stores the result, so a quiz edited
between "load quiz" and "save result" can never be scored against a stale
structure.
"""
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from flask import current_app
from sqlalchemy.orm import selectinload

from quizhub import db
from quizhub.quiz.errors import NotFoundError, QuizError, UnauthorizedError, ValidationError
from quizhub.quiz.mappers import ResultSummary, result_summary
from quizhub.quiz.models import Question, Quiz, Result, ResultAnswer


def _as_id(value: Any, what: str) -> int:
    # bool is an int subclass; true/false are never valid ids
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {what}: {value!r}")
    if isinstance(value, int):
        return value
    # int() only parses decimal digits ("²" is a digit but not decimal)
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    raise ValidationError(f"Invalid {what}: {value!r}")


def normalize_answers(answers: Optional[Mapping[Any, Any]]) -> Dict[int, int]:
    """
    Convert a submitted ``{question_id: option_id}`` mapping to ints.

    JSON object keys arrive as strings, so digit strings are accepted for
    both sides. A null option id means the question was left unanswered.
    """
    if answers is None:
        return {}
    if not isinstance(answers, Mapping):
        raise ValidationError("'answers' must be an object mapping question ids to option ids")
    normalized = {}
    for raw_question_id, raw_option_id in answers.items():
        question_id = _as_id(raw_question_id, "question id")
        if raw_option_id is None:
            continue
        normalized[question_id] = _as_id(raw_option_id, "option id")
    return normalized


class ResultSubmissionEngine:
    """Validates, scores and stores one attempt at a quiz."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def submit_result(self, quiz_id: int, user_id: Optional[int],
                      answers: Optional[Mapping[Any, Any]]) -> ResultSummary:
        """
        Score ``answers`` against the quiz's current questions and store a
        Result with one ResultAnswer per answered question.

        Questions are processed in ascending id order. An unanswered
        question counts as incorrect. An answer naming a question outside
        the quiz, or an option that its question does not own, rejects the
        whole submission and nothing is written.
        """
        if user_id is None:
            raise UnauthorizedError("Authentication required")
        chosen = normalize_answers(answers)

        try:
            quiz = self.session.get(Quiz, quiz_id, populate_existing=True)
            if quiz is None:
                raise NotFoundError(f"Quiz {quiz_id} not found")

            if current_app.config.get('QUIZ_REQUIRE_PUBLISHED') and not quiz.is_published:
                raise ValidationError("Quiz is not published")

            questions = self.session.execute(
                db.select(Question)
                .where(Question.quiz_id == quiz.id)
                .order_by(Question.id)
                .options(selectinload(Question.options))
                .execution_options(populate_existing=True)
            ).scalars().all()

            total_questions = len(questions)
            if total_questions == 0:
                raise ValidationError("Quiz has no questions")

            unknown = sorted(set(chosen) - {q.id for q in questions})
            if unknown:
                raise ValidationError(f"Question {unknown[0]} does not belong to quiz {quiz.id}")

            correct_count = 0
            answer_rows = []
            for question in questions:
                option_id = chosen.get(question.id)
                if option_id is None:
                    continue
                option = question.find_option(option_id)
                if option is None:
                    raise ValidationError(
                        f"Option {option_id} does not belong to question {question.id}"
                    )
                if option.is_correct:
                    correct_count += 1
                answer_rows.append(ResultAnswer(question_id=question.id, option_id=option.id))

            result = Result(
                user_id=user_id,
                quiz_id=quiz.id,
                correct_count=correct_count,
                total_questions=total_questions,
                completed_at=datetime.utcnow(),
                answers=answer_rows,
            )
            self.session.add(result)
            self.session.commit()
        except QuizError as e:
            self.session.rollback()
            current_app.logger.warning(
                f"Rejected submission for quiz {quiz_id} by user {user_id}: {e.message}"
            )
            raise
        except Exception:
            self.session.rollback()
            current_app.logger.exception(f"Error while storing result for quiz {quiz_id}")
            raise

        current_app.logger.info(
            f"Created result {result.id} for user {user_id} on quiz {quiz_id}: "
            f"{correct_count}/{total_questions}"
        )
        return result_summary(result)
