from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.database import get_db
from pocketledger.services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def get_current_user(
    token: str | None = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> models.User:
    """Resolve ``Authorization: Bearer <token>`` to the signed-in user.

    Missing, expired or revoked tokens raise a 401 through ``AuthenticationError``.
    Tests may override this dependency to simulate different users.
    """
    return AuthService(db).resolve_session(token)
