"""
Atomic creation of a quiz aggregate.

A quiz, its questions and their options are written in one session
transaction: either all of them become visible or none do.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from flask import current_app

from quizhub import db
from quizhub.quiz.errors import ValidationError
from quizhub.quiz.models import Option, Question, Quiz


def _clean_optional(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field, mapping blank values to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _text_field(data: dict, key: str, where: str) -> str:
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"{where}: '{key}' must be a string")
    return value


@dataclass
class OptionEntry:
    text: str
    is_correct: bool = False

    @classmethod
    def from_payload(cls, data: Any, where: str = "option") -> "OptionEntry":
        if not isinstance(data, dict):
            raise ValidationError(f"{where} must be an object")
        return cls(
            text=_text_field(data, 'text', where),
            is_correct=bool(data.get('is_correct', False)),
        )


@dataclass
class QuestionEntry:
    text: str
    options: List[OptionEntry] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Any, where: str = "question") -> "QuestionEntry":
        if not isinstance(data, dict):
            raise ValidationError(f"{where} must be an object")
        raw_options = data.get('options') or []
        if not isinstance(raw_options, list):
            raise ValidationError(f"{where}: 'options' must be a list")
        return cls(
            text=_text_field(data, 'text', where),
            options=[
                OptionEntry.from_payload(o, f"{where} option {i + 1}")
                for i, o in enumerate(raw_options)
            ],
        )


@dataclass
class QuizMeta:
    title: str
    subject_code: str = ''
    description: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "QuizMeta":
        return cls(
            title=_text_field(data, 'title', 'quiz'),
            subject_code=_text_field(data, 'subject_code', 'quiz'),
            description=_text_field(data, 'description', 'quiz') or None,
            image_url=_text_field(data, 'image_url', 'quiz') or None,
        )


def parse_create_payload(data: dict) -> tuple[QuizMeta, List[QuestionEntry]]:
    """
    Parse a create-quiz request body.

    Request body:
    {
        "title": "Quiz Title",
        "subject_code": "ITPE3200",
        "description": "Optional description",
        "image_url": "Optional cover image",
        "questions": [
            {"text": "Question?", "options": [{"text": "A", "is_correct": true}, ...]},
            ...
        ]
    }
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    raw_questions = data.get('questions') or []
    if not isinstance(raw_questions, list):
        raise ValidationError("'questions' must be a list")
    questions = [
        QuestionEntry.from_payload(q, f"question {i + 1}")
        for i, q in enumerate(raw_questions)
    ]
    return QuizMeta.from_payload(data), questions


class QuizAggregateWriter:
    """Creates a quiz together with its questions and options."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def create_quiz(self, meta: QuizMeta, questions: List[QuestionEntry],
                    owner_id: Optional[int] = None) -> Quiz:
        """
        Insert the quiz, then every non-blank question under it, then every
        non-blank option under its question, and commit once.

        Questions and options whose text is blank after trimming are
        dropped. An empty title raises ValidationError before anything is
        written. Any failure rolls the whole aggregate back.
        """
        title = (meta.title or '').strip()
        if not title:
            raise ValidationError("Quiz title is required")

        try:
            quiz = Quiz(
                title=title,
                subject_code=(meta.subject_code or '').strip(),
                description=_clean_optional(meta.description),
                image_url=_clean_optional(meta.image_url),
                created_at=datetime.utcnow(),
                is_published=False,
                owner_id=owner_id,
            )
            self.session.add(quiz)
            self.session.flush()

            dropped = 0
            for entry in questions:
                text = (entry.text or '').strip()
                if not text:
                    dropped += 1
                    continue
                question = Question(quiz_id=quiz.id, text=text)
                self.session.add(question)
                self.session.flush()

                for option_entry in entry.options:
                    option_text = (option_entry.text or '').strip()
                    if not option_text:
                        continue
                    self.session.add(Option(
                        question_id=question.id,
                        text=option_text,
                        is_correct=bool(option_entry.is_correct),
                    ))

            self.session.commit()
        except Exception:
            self.session.rollback()
            current_app.logger.exception(f"Error while creating quiz '{title}'")
            raise

        if dropped:
            current_app.logger.info(f"Dropped {dropped} blank question(s) while creating quiz {quiz.id}")
        current_app.logger.info(f"Created quiz {quiz.id} with {quiz.get_question_count()} question(s)")
        return quiz
