"""
Typed errors raised by the quiz components.

Each error carries a machine readable ``kind`` and the HTTP status the API
answers with. Components roll their session back before raising, so an
error never leaves a partial quiz or result behind.
"""


class QuizError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "kind": self.kind}


class NotFoundError(QuizError):
    kind = "not_found"
    status_code = 404


class ValidationError(QuizError):
    kind = "validation"
    status_code = 400


class ForbiddenError(QuizError):
    kind = "forbidden"
    status_code = 403


class UnauthorizedError(QuizError):
    kind = "unauthorized"
    status_code = 401


class ConflictError(QuizError):
    kind = "conflict"
    status_code = 409
