"""Session management: authentication state, token persistence, user identity.

`SessionManager` lives in `chatcore.session.manager`; this package exposes
only the models so the API client can import them without a cycle.
"""

from chatcore.session.models import Session, User

__all__ = ["Session", "User"]
