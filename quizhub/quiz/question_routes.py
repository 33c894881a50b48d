"""
Routes for editing the questions and options of an existing quiz.

Only the quiz owner can read or change them (or any signed-in user for a
quiz without owner). A question or option that appears in a stored
result cannot be deleted.
"""
from flask import jsonify, request
from flask_login import login_required

from quizhub.auth.identity import current_caller_id
from quizhub.common.decorators import handle_api_errors
from quizhub.quiz import quiz_bp
from quizhub.quiz.aggregate_writer import OptionEntry, QuestionEntry
from quizhub.quiz.mappers import option_detail, question_detail
from quizhub.quiz.service import QuizService


@quiz_bp.route('/quizzes/<int:quiz_id>/questions', methods=['POST'])
@login_required
@handle_api_errors
def add_question(quiz_id):
    """
    Add a question to a quiz.

    Request body:
    {
        "text": "What is 2+2?",
        "options": [
            {"text": "3", "is_correct": false},
            {"text": "4", "is_correct": true}
        ]
    }
    """
    entry = QuestionEntry.from_payload(request.get_json(silent=True) or {})
    question = QuizService().add_question(quiz_id, current_caller_id(), entry)
    return jsonify({
        'success': True,
        'message': 'Question added successfully',
        'question': question_detail(question),
    }), 201


@quiz_bp.route('/questions/<int:question_id>', methods=['GET'])
@login_required
@handle_api_errors
def get_question(question_id):
    """Get a single question with its options and correctness flags."""
    question = QuizService().get_question(question_id, current_caller_id())
    return jsonify({'success': True, 'question': question_detail(question)}), 200


@quiz_bp.route('/questions/<int:question_id>', methods=['PUT', 'PATCH'])
@login_required
@handle_api_errors
def update_question(question_id):
    """
    Update the text of a question.

    Request body:
    {"text": "New question text"}
    """
    data = request.get_json(silent=True) or {}
    question = QuizService().update_question(question_id, current_caller_id(), data)
    return jsonify({
        'success': True,
        'message': 'Question updated successfully',
        'question': question_detail(question),
    }), 200


@quiz_bp.route('/questions/<int:question_id>', methods=['DELETE'])
@login_required
@handle_api_errors
def delete_question(question_id):
    QuizService().delete_question(question_id, current_caller_id())
    return jsonify({'success': True, 'message': 'Question deleted successfully'}), 200


@quiz_bp.route('/questions/<int:question_id>/options', methods=['POST'])
@login_required
@handle_api_errors
def add_option(question_id):
    """
    Add an option to a question.

    Request body:
    {"text": "Oslo", "is_correct": true}
    """
    entry = OptionEntry.from_payload(request.get_json(silent=True) or {})
    option = QuizService().add_option(question_id, current_caller_id(), entry)
    return jsonify({
        'success': True,
        'message': 'Option added successfully',
        'option': option_detail(option),
    }), 201


@quiz_bp.route('/options/<int:option_id>', methods=['GET'])
@login_required
@handle_api_errors
def get_option(option_id):
    option = QuizService().get_option(option_id, current_caller_id())
    return jsonify({'success': True, 'option': option_detail(option)}), 200


@quiz_bp.route('/options/<int:option_id>', methods=['PUT', 'PATCH'])
@login_required
@handle_api_errors
def update_option(option_id):
    """
    Update an option.

    Request body (either field may be omitted):
    {"text": "Stockholm", "is_correct": true}
    """
    data = request.get_json(silent=True) or {}
    option = QuizService().update_option(option_id, current_caller_id(), data)
    return jsonify({
        'success': True,
        'message': 'Option updated successfully',
        'option': option_detail(option),
    }), 200


@quiz_bp.route('/options/<int:option_id>', methods=['DELETE'])
@login_required
@handle_api_errors
def delete_option(option_id):
    QuizService().delete_option(option_id, current_caller_id())
    return jsonify({'success': True, 'message': 'Option deleted successfully'}), 200
