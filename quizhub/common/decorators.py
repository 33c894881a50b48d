from functools import wraps

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from quizhub import db


def handle_api_errors(f):
    """
    Decorator for JSON API routes.

    Typed quiz errors and HTTP exceptions propagate to the app's error
    handlers; anything else rolls the session back, is logged with its
    traceback and becomes a generic 500 response.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # Imported here: the quiz package imports this module while loading its routes
        from quizhub.quiz.errors import QuizError
        try:
            return f(*args, **kwargs)
        except (QuizError, HTTPException):
            raise
        except Exception:
            db.session.rollback()
            current_app.logger.exception(f"Unhandled error in {f.__name__}")
            return jsonify({"success": False, "error": "Internal server error"}), 500
    return decorated_function
