"""Caller identity resolution.

Every protected handler receives an ``AuthenticatedPrincipal`` through its
``principal`` keyword argument. The credential is looked up once, by
flask-jwt-extended, in the order given by ``JWT_TOKEN_LOCATION``: the
``Authorization: Bearer`` header first, then the access-token cookie.
"""

import functools
from dataclasses import dataclass
from typing import Iterable, Optional

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from canteen.errors import Forbidden


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    id: int
    role: str
    phone: Optional[str] = None
    token_jti: Optional[str] = None
    token_expires: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def current_principal() -> Optional[AuthenticatedPrincipal]:
    """Build the principal from an already verified JWT, if any."""
    identity = get_jwt_identity()
    if identity is None:
        return None
    claims = get_jwt()
    return AuthenticatedPrincipal(
        id=int(identity),
        role=claims.get("role"),
        phone=claims.get("phone"),
        token_jti=claims.get("jti"),
        token_expires=claims.get("exp"),
    )


def principal_required(roles: Optional[Iterable[str]] = None, optional: bool = False,
                       refresh: bool = False):
    """Verify the caller's credential and pass it on as ``principal``.

    ``roles`` restricts access to the listed roles (403 otherwise).
    With ``optional`` an anonymous caller gets ``principal=None``.
    """
    allowed = set(roles) if roles else None

    def wrapper(fn):
        @functools.wraps(fn)
        def decorator(*args, **kwargs):
            verify_jwt_in_request(optional=optional, refresh=refresh)
            principal = current_principal()
            if allowed is not None and (principal is None or principal.role not in allowed):
                raise Forbidden("Access forbidden: insufficient role.")
            kwargs["principal"] = principal
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def admin_required():
    return principal_required(roles=["admin"])
