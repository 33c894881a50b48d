"""
Security logging module.

Sign-in events and denied access to quizzes and results are written to
the application logger with a ``SECURITY:`` prefix so they can be
filtered out of the regular request log.
"""

from datetime import datetime
from typing import Optional

from flask import current_app, has_request_context, request


def _client_ip() -> Optional[str]:
    return request.remote_addr if has_request_context() else None


class SecurityLogger:
    """
    Security event logger.

    Every event line carries the client IP and a UTC timestamp.
    """

    @staticmethod
    def _emit(level: str, event: str, **fields):
        details = ", ".join(f"{key}: {value}" for key, value in fields.items())
        getattr(current_app.logger, level)(
            f"SECURITY: {event} - {details}, IP: {_client_ip()}, "
            f"Time: {datetime.utcnow().isoformat()}"
        )

    @staticmethod
    def log_failed_login(email: str, reason: str = "Invalid credentials"):
        """
        Log a failed login attempt.

        Args:
            email: Email address used in login attempt
            reason: Reason for failure
        """
        SecurityLogger._emit("warning", "Failed login attempt", Email=email, Reason=reason)

    @staticmethod
    def log_successful_login(user_id: int, email: str):
        SecurityLogger._emit("info", "Successful login", **{"User ID": user_id, "Email": email})

    @staticmethod
    def log_access_denied(resource: str, user_id: Optional[int], kind: str):
        """
        Log a request rejected because the caller is anonymous
        (``kind`` "unauthorized") or does not own the quiz or result
        (``kind`` "forbidden").
        """
        user_info = user_id if user_id is not None else "Unauthenticated"
        SecurityLogger._emit(
            "warning", "Access denied", **{"User ID": user_info, "Resource": resource, "Kind": kind}
        )
