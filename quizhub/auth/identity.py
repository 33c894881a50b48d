"""
Identity provider seam.

Routes resolve the logged-in user into an explicit caller id here and pass
it down to the quiz components, which never read session state themselves.
"""
from typing import Optional

from flask_login import current_user


def current_caller_id() -> Optional[int]:
    """Return the id of the authenticated caller, or None when anonymous."""
    if current_user and current_user.is_authenticated:
        return current_user.id
    return None
