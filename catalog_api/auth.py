"""
Authentication gate for protected endpoints.

The gate itself is a pure decision: given the token a caller presented (or
None), it either admits the caller with a verified identity or rejects with a
reason. ``require_identity`` adapts it to FastAPI and is attached to every
protected route.

The token travels in the JSON request body under ``token``, not in an
Authorization header, to stay compatible with existing clients.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog
from fastapi import Request

from catalog_api.errors import (
    ExpiredTokenError,
    ForbiddenError,
    InvalidTokenError,
    UnauthenticatedError,
)
from catalog_api.models import Identity
from catalog_api.tokens import TokenService

logger = structlog.get_logger(__name__)

TOKEN_FIELD = "token"


class RejectReason(str, Enum):
    """Why the gate turned a caller away."""
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of an authentication check."""
    allowed: bool
    identity: Optional[Identity] = None
    reason: Optional[RejectReason] = None

    @classmethod
    def admit(cls, identity: Identity) -> "GateDecision":
        return cls(allowed=True, identity=identity)

    @classmethod
    def reject(cls, reason: RejectReason) -> "GateDecision":
        return cls(allowed=False, reason=reason)


class AuthGate:
    """Decides whether a presented token grants access."""

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    def check(self, token: Any) -> GateDecision:
        """
        Check a presented credential.

        Args:
            token: Raw value of the credential field, None when absent

        Returns:
            GateDecision admitting the verified identity or carrying the reason
        """
        if token is None or token == "":
            return GateDecision.reject(RejectReason.MISSING_TOKEN)
        if not isinstance(token, str):
            return GateDecision.reject(RejectReason.INVALID_TOKEN)

        try:
            claims = self.token_service.verify(token)
        except ExpiredTokenError:
            return GateDecision.reject(RejectReason.EXPIRED_TOKEN)
        except InvalidTokenError:
            return GateDecision.reject(RejectReason.INVALID_TOKEN)

        return GateDecision.admit(Identity(user_id=claims.user_id))


def enforce(decision: GateDecision) -> Identity:
    """
    Turn a gate decision into an identity or an API error.

    Raises:
        UnauthenticatedError: No credential was presented
        ForbiddenError: The credential was invalid or expired
    """
    if decision.allowed:
        return decision.identity
    if decision.reason == RejectReason.MISSING_TOKEN:
        raise UnauthenticatedError()
    raise ForbiddenError("Invalid or expired token", context={"reason": decision.reason.value})


async def extract_body_token(request: Request) -> Any:
    """Read the credential field from a JSON object body; anything else counts as absent."""
    body = await request.body()
    if not body:
        return None
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get(TOKEN_FIELD)


async def require_identity(request: Request) -> Identity:
    """
    FastAPI dependency guarding protected endpoints.

    Usage:
        @app.post("/api/books")
        async def route(identity: Identity = Depends(require_identity)): ...
    """
    gate: AuthGate = request.app.state.auth_gate
    token = await extract_body_token(request)
    decision = gate.check(token)

    if not decision.allowed:
        logger.warning("Request rejected by auth gate", path=request.url.path, reason=decision.reason.value)

    identity = enforce(decision)
    request.state.identity = identity
    return identity
