# missiondir/auth_scopes.py
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Set

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError

from missiondir.errors import Forbidden

log = logging.getLogger("missiondir.auth")

ERR_INVALID = "Invalid or missing bearer token"


class Scope(str, Enum):
    READ_ONLY = "read"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANK[self]


_RANK = {Scope.READ_ONLY: 1, Scope.ADMIN: 2}


class Operation(str, Enum):
    GET_MISSION = "getMission"
    CREATE_MISSION = "createMission"


class Surface(str, Enum):
    PERSONNEL = "personnel"
    ADMIN = "admin"

    @property
    def ceiling(self) -> Scope:
        return Scope.READ_ONLY if self is Surface.PERSONNEL else Scope.ADMIN


ALLOWED_OPERATIONS: dict[Scope, frozenset[Operation]] = {
    Scope.READ_ONLY: frozenset({Operation.GET_MISSION}),
    Scope.ADMIN: frozenset({Operation.GET_MISSION, Operation.CREATE_MISSION}),
}

# Scope strings as issued by the identity provider. Resource-server prefixed
# forms come from the OAuth clients of each surface.
_EXTERNAL_SCOPES: dict[str, Scope] = {
    "read": Scope.READ_ONLY,
    "personnelusers/read": Scope.READ_ONLY,
    "*": Scope.ADMIN,
    "adminusers/*": Scope.ADMIN,
}


@dataclass(frozen=True)
class CallerIdentity:
    scope: Scope


def parse_scope(granted: Iterable[str]) -> Optional[Scope]:
    """Broadest recognised scope in `granted`; unknown strings are ignored."""
    best: Optional[Scope] = None
    for raw in granted:
        scope = _EXTERNAL_SCOPES.get(str(raw).strip())
        if scope is not None and (best is None or scope.rank > best.rank):
            best = scope
    return best


def cap_scope(scope: Scope, surface: Surface) -> Scope:
    ceiling = surface.ceiling
    return scope if scope.rank <= ceiling.rank else ceiling


def is_allowed(scope: Scope, operation: Operation) -> bool:
    return operation in ALLOWED_OPERATIONS[scope]


def authorize(scope: Scope, operation: Operation) -> None:
    if not is_allowed(scope, operation):
        log.info("forbidden scope=%s operation=%s", scope.value, operation.value)
        raise Forbidden(f"scope {scope.value!r} does not permit {operation.value}")


# =============================================================================
# Token -> scopes (identity collaborator)
# =============================================================================


def verify_token_raw(token: str, *, static_key: str = "") -> Optional[Set[str]]:
    """
    Returns granted scope strings for a token, or None if the token is unknown.
    The static key (dev / bootstrap) carries full scope.
    """
    if not token:
        return None

    if static_key and hmac.compare_digest(token, static_key):
        return {"*"}

    from missiondir.api_keys_store import lookup_scopes
    from missiondir.db import get_db

    try:
        db = next(get_db())
        try:
            return lookup_scopes(db, token)
        finally:
            db.close()
    except SQLAlchemyError:
        # Key table unavailable means nobody is authenticated, not a 500.
        log.exception("api key lookup failed")
        return None


_bearer = HTTPBearer(auto_error=False)


def verify_bearer(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[Set[str]]:
    """
    Dependency: granted scope strings, or None when auth is disabled.
    Raises 401 on a missing or unknown token.
    """
    settings = request.app.state.settings
    if not settings.auth_enabled:
        return None

    if credentials is None or not credentials.credentials.strip():
        raise HTTPException(
            status_code=401, detail=ERR_INVALID, headers={"WWW-Authenticate": "Bearer"}
        )

    scopes = verify_token_raw(credentials.credentials.strip(), static_key=settings.api_key)
    if scopes is None:
        raise HTTPException(
            status_code=401, detail=ERR_INVALID, headers={"WWW-Authenticate": "Bearer"}
        )
    return scopes


def require_caller(surface: Surface):
    """
    Dependency factory: resolve the caller's scope for one surface.
    A valid token with no recognised scope is a 403.
    """

    def _dep(granted: Optional[Set[str]] = Depends(verify_bearer)) -> CallerIdentity:
        if granted is None:
            return CallerIdentity(scope=surface.ceiling)

        scope = parse_scope(granted)
        if scope is None:
            raise HTTPException(status_code=403, detail="forbidden")
        return CallerIdentity(scope=cap_scope(scope, surface))

    return _dep
