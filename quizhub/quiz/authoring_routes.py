"""
Routes for authoring and browsing quizzes.

Signed-in users can:
- Create a quiz with its questions and options in one request
- Update quiz metadata, publish/unpublish and delete quizzes they own
Anyone can list quizzes and load the take view of a quiz.
"""
from flask import jsonify, request
from flask_login import login_required

from quizhub.auth.identity import current_caller_id
from quizhub.common.decorators import handle_api_errors
from quizhub.common.request_utils import get_bool_arg, get_int_arg, get_pagination
from quizhub.quiz import quiz_bp
from quizhub.quiz.aggregate_writer import QuizAggregateWriter, parse_create_payload
from quizhub.quiz.mappers import quiz_structure, quiz_to_dict
from quizhub.quiz.service import QuizService


@quiz_bp.route('/quizzes', methods=['POST'])
@login_required
@handle_api_errors
def create_quiz():
    """
    Create a quiz together with its questions and options.

    Request body:
    {
        "title": "Quiz Title",
        "subject_code": "ITPE3200",
        "description": "Optional description",
        "image_url": "Optional cover image url",
        "questions": [
            {"text": "2 + 2?", "options": [{"text": "4", "is_correct": true}, {"text": "5"}]}
        ]
    }

    Questions or options with blank text are dropped.
    """
    meta, questions = parse_create_payload(request.get_json(silent=True) or {})
    quiz = QuizAggregateWriter().create_quiz(meta, questions, owner_id=current_caller_id())

    return jsonify({
        'success': True,
        'message': 'Quiz created successfully',
        'quiz': quiz_to_dict(quiz),
    }), 201


@quiz_bp.route('/quizzes', methods=['GET'])
@handle_api_errors
def list_quizzes():
    """
    List quizzes ordered by id.

    Query parameters: page, page_size, search (title substring),
    owner_id, is_published.
    """
    page, page_size = get_pagination()
    filters = {
        'search': request.args.get('search'),
        'owner_id': get_int_arg('owner_id'),
        'is_published': get_bool_arg('is_published'),
    }
    service = QuizService()
    rows = service.list_quizzes(page=page, page_size=page_size, **filters)

    return jsonify({
        'success': True,
        'quizzes': [quiz_to_dict(quiz, count) for quiz, count in rows],
        'page': page,
        'page_size': page_size,
        'total': service.count_quizzes(**filters),
    }), 200


@quiz_bp.route('/quizzes/<int:quiz_id>', methods=['GET'])
@handle_api_errors
def get_quiz(quiz_id):
    quiz = QuizService().get_quiz(quiz_id)
    return jsonify({'success': True, 'quiz': quiz_to_dict(quiz)}), 200


@quiz_bp.route('/quizzes/<int:quiz_id>/take', methods=['GET'])
@handle_api_errors
def get_take_view(quiz_id):
    """
    Get a quiz with all questions and options for taking it.
    Correctness flags are not included.
    """
    quiz, questions = QuizService().get_quiz_with_questions(quiz_id)
    return jsonify({
        'success': True,
        'quiz': quiz_structure(quiz, questions, include_correct=False),
    }), 200


@quiz_bp.route('/quizzes/<int:quiz_id>', methods=['PUT', 'PATCH'])
@login_required
@handle_api_errors
def update_quiz(quiz_id):
    """
    Update quiz metadata (title, subject_code, description, image_url,
    is_published). Questions and options are not touched.
    """
    data = request.get_json(silent=True) or {}
    quiz = QuizService().update_quiz(quiz_id, current_caller_id(), data)
    return jsonify({
        'success': True,
        'message': 'Quiz updated successfully',
        'quiz': quiz_to_dict(quiz),
    }), 200


@quiz_bp.route('/quizzes/<int:quiz_id>/publish', methods=['POST'])
@login_required
@handle_api_errors
def publish_quiz(quiz_id):
    quiz = QuizService().set_published(quiz_id, current_caller_id(), True)
    return jsonify({'success': True, 'quiz': quiz_to_dict(quiz)}), 200


@quiz_bp.route('/quizzes/<int:quiz_id>/unpublish', methods=['POST'])
@login_required
@handle_api_errors
def unpublish_quiz(quiz_id):
    quiz = QuizService().set_published(quiz_id, current_caller_id(), False)
    return jsonify({'success': True, 'quiz': quiz_to_dict(quiz)}), 200


@quiz_bp.route('/quizzes/<int:quiz_id>', methods=['DELETE'])
@login_required
@handle_api_errors
def delete_quiz(quiz_id):
    """Delete a quiz with its questions, options and results."""
    QuizService().delete_quiz(quiz_id, current_caller_id())
    return jsonify({'success': True, 'message': 'Quiz deleted successfully'}), 200
