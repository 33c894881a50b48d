"""
Routes for taking quizzes and reviewing results.

Signed-in users can:
- Submit an answer set for a quiz and get it scored
- List and delete their own results
- Load the full review view of a result
Quiz owners can list the results recorded against their quizzes.
"""
from flask import jsonify, request
from flask_login import login_required

from quizhub.auth.identity import current_caller_id
from quizhub.common.decorators import handle_api_errors
from quizhub.common.request_utils import get_pagination
from quizhub.quiz import quiz_bp
from quizhub.quiz.mappers import result_to_dict
from quizhub.quiz.reconstructor import ResultReconstructor
from quizhub.quiz.scoring import ResultSubmissionEngine
from quizhub.quiz.service import ResultService


@quiz_bp.route('/quizzes/<int:quiz_id>/results', methods=['POST'])
@login_required
@handle_api_errors
def submit_result(quiz_id):
    """
    Submit answers for a quiz.

    Request body:
    {
        "answers": {"12": 40, "13": 44}  // question id -> chosen option id
    }

    Unanswered questions count as incorrect. The total is the number of
    questions the quiz has right now.
    """
    data = request.get_json(silent=True) or {}
    summary = ResultSubmissionEngine().submit_result(
        quiz_id, current_caller_id(), data.get('answers')
    )
    return jsonify({
        'success': True,
        'message': 'Result submitted',
        'result': summary.to_dict(),
    }), 201


@quiz_bp.route('/results', methods=['GET'])
@login_required
@handle_api_errors
def list_my_results():
    """List the caller's results, newest first."""
    page, page_size = get_pagination()
    service = ResultService()
    caller = current_caller_id()
    rows = service.list_results_for_user(caller, page=page, page_size=page_size)

    return jsonify({
        'success': True,
        'results': [result_to_dict(result, quiz) for result, quiz in rows],
        'page': page,
        'page_size': page_size,
        'total': service.count_results_for_user(caller),
    }), 200


@quiz_bp.route('/quizzes/<int:quiz_id>/results', methods=['GET'])
@login_required
@handle_api_errors
def list_quiz_results(quiz_id):
    """List every result recorded against a quiz (quiz owner only)."""
    page, page_size = get_pagination()
    quiz, results, total = ResultService().list_results_for_quiz(
        quiz_id, current_caller_id(), page=page, page_size=page_size
    )
    return jsonify({
        'success': True,
        'quiz_id': quiz.id,
        'quiz_title': quiz.title,
        'results': [result_to_dict(result, quiz) for result in results],
        'page': page,
        'page_size': page_size,
        'total': total,
    }), 200


@quiz_bp.route('/results/<int:result_id>/full', methods=['GET'])
@handle_api_errors
def get_full_result(result_id):
    """
    Full review of a result: summary, quiz structure with correctness
    flags and the option chosen for each question.
    """
    view = ResultReconstructor().get_full_result(result_id, current_caller_id())
    return jsonify({'success': True, **view}), 200


@quiz_bp.route('/results/<int:result_id>', methods=['DELETE'])
@login_required
@handle_api_errors
def delete_result(result_id):
    ResultService().delete_result(result_id, current_caller_id())
    return jsonify({'success': True, 'message': 'Result deleted'}), 200
