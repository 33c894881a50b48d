"""Helpers for reading query-string arguments in API routes."""
from typing import Optional

from flask import current_app, request

from quizhub.quiz.errors import ValidationError


def get_int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Query parameter '{name}' must be an integer")


def get_bool_arg(name: str) -> Optional[bool]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    lowered = raw.lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"Query parameter '{name}' must be a boolean")


def get_pagination() -> tuple[int, int]:
    """Return (page, page_size) from the query string, falling back to config defaults."""
    page = get_int_arg("page", 1)
    page_size = get_int_arg("page_size", current_app.config.get("DEFAULT_PAGE_SIZE", 20))
    return page, page_size
