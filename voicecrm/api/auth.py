# File: voicecrm/api/auth.py
import logging
import secrets
from typing import Dict, Optional

from fastapi import Header, HTTPException, Request, status

from voicecrm.core.config.settings import settings

logger = logging.getLogger(__name__)


class BearerTokenAuth:
    """
    Static bearer tokens mapped to user ids.

    Tokens come from VOICECRM_API_TOKENS ("token:user_id,..."). With no tokens
    configured every protected request is refused.
    """

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = dict(tokens) if tokens is not None else settings.api_token_map()
        if not self.tokens:
            logger.warning("VOICECRM_API_TOKENS not set - all protected endpoints will answer 401")

    def verify(self, authorization: Optional[str]) -> str:
        """Returns the user id bound to the bearer token."""
        if not authorization:
            raise self._unauthorized("Missing authorization header")

        try:
            scheme, token = authorization.split()
            if scheme.lower() != "bearer":
                raise ValueError("Invalid authentication scheme")
        except ValueError as e:
            raise self._unauthorized("Invalid authorization header format. Expected: Bearer {token}") from e

        for known, user_id in self.tokens.items():
            # Timing-safe comparison against every configured token
            if secrets.compare_digest(token, known):
                return user_id

        raise self._unauthorized("Invalid token")

    @staticmethod
    def _unauthorized(detail: str) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_user(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """
    Dependency for protected endpoints. Resolves the caller's user id.

    Usage:
        @router.get("/activities/pending-review")
        def pending(user_id: str = Depends(require_user)):
            ...
    """
    return request.app.state.auth.verify(authorization)
