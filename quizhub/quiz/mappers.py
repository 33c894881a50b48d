"""
Pure mapping functions from quiz entities to API view dicts.

Views are built explicitly per shape; entities are never serialised
directly, so the parent/child back references never leak into output.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional

from quizhub.quiz.models import Option, Question, Quiz, Result, compute_percentage


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class ResultSummary:
    result_id: int
    correct_count: int
    total_questions: int
    percentage: float
    completed_at: datetime

    def to_dict(self) -> dict:
        return {
            'result_id': self.result_id,
            'correct_count': self.correct_count,
            'total_questions': self.total_questions,
            'percentage': self.percentage,
            'completed_at': _iso(self.completed_at),
        }


def result_summary(result: Result) -> ResultSummary:
    return ResultSummary(
        result_id=result.id,
        correct_count=result.correct_count,
        total_questions=result.total_questions,
        percentage=compute_percentage(result.correct_count, result.total_questions),
        completed_at=result.completed_at,
    )


def result_to_dict(result: Result, quiz: Optional[Quiz] = None) -> dict:
    """Summary of a stored result, with the quiz title when ``quiz`` is given."""
    data = result_summary(result).to_dict()
    data['user_id'] = result.user_id
    data['quiz_id'] = result.quiz_id
    if quiz is not None:
        data['quiz_title'] = quiz.title
        data['subject_code'] = quiz.subject_code or ''
    return data


def quiz_to_dict(quiz: Quiz, question_count: Optional[int] = None) -> dict:
    """Quiz metadata view used by create/list/get/update."""
    if question_count is None:
        question_count = quiz.get_question_count()
    return {
        'id': quiz.id,
        'title': quiz.title,
        'subject_code': quiz.subject_code or '',
        'description': quiz.description,
        'image_url': quiz.image_url,
        'created_at': _iso(quiz.created_at),
        'updated_at': _iso(quiz.updated_at),
        'is_published': quiz.is_published,
        'published_at': _iso(quiz.published_at),
        'owner_id': quiz.owner_id,
        'question_count': question_count,
    }


def _sorted_by_id(items):
    return sorted(items, key=lambda item: item.id)


def option_to_dict(option: Option, include_correct: bool = True) -> dict:
    data = {'id': option.id, 'text': option.text}
    if include_correct:
        data['is_correct'] = option.is_correct
    return data


def question_to_dict(question: Question, include_correct: bool = True) -> dict:
    return {
        'id': question.id,
        'text': question.text,
        'options': [option_to_dict(o, include_correct) for o in _sorted_by_id(question.options)],
    }


def question_detail(question: Question) -> dict:
    """Single-question view for the quiz owner, correctness included."""
    data = question_to_dict(question, include_correct=True)
    data['quiz_id'] = question.quiz_id
    return data


def option_detail(option: Option) -> dict:
    data = option_to_dict(option, include_correct=True)
    data['question_id'] = option.question_id
    return data


def quiz_structure(quiz: Quiz, questions: Iterable[Question], include_correct: bool = True) -> dict:
    """Quiz with its questions and options, both in ascending id order."""
    return {
        'id': quiz.id,
        'title': quiz.title,
        'subject_code': quiz.subject_code or '',
        'description': quiz.description or '',
        'image_url': quiz.image_url or '',
        'is_published': quiz.is_published,
        'questions': [question_to_dict(q, include_correct) for q in _sorted_by_id(questions)],
    }


def full_result_view(result: Result, quiz: Quiz, questions: Iterable[Question],
                     answers: Mapping[int, int]) -> dict:
    """
    Review view of a stored result.

    Every question carries ``selected_option_id`` (None when unanswered) so
    a client can mark it correct, incorrect or unanswered without further
    lookups. ``answers`` repeats the same data as a question -> option map.
    """
    structure = quiz_structure(quiz, questions, include_correct=True)
    for question in structure['questions']:
        question['selected_option_id'] = answers.get(question['id'])
    return {
        'result': result_to_dict(result, quiz),
        'quiz': structure,
        'answers': {question_id: answers[question_id] for question_id in sorted(answers)},
    }
