from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import UnauthorizedError, get_error_message, to_http_exception
from .jwt import decode_access_token

_bearer = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    """
    Resolve the caller from the bearer token issued by the identity service.
    The returned claims dict carries `sub` (user id), `role` and `name`.
    """
    unauthorized = to_http_exception(UnauthorizedError(get_error_message("unauthorized")))
    if credentials is None or not credentials.credentials:
        raise unauthorized

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise unauthorized

    try:
        int(claims["sub"])
    except (TypeError, ValueError):
        raise unauthorized
    return claims


def current_actor_id(user: dict) -> int:
    return int(user.get("sub"))
