"""
Things API: Token Authentication
==================================

What:  FastAPI dependency that authenticates every /api request.
How:   Attached as a router-level dependency in `create_app()`, so it runs
       before each handler. Tokens come from `settings.api_tokens`; when none
       are configured authentication is disabled.

Accepted Authorization headers:
    Authorization: Bearer <token>
    Authorization: Token token="<token>"
    Authorization: Token <token>

Failure raises UnauthorizedError, rendered as 401 with
`WWW-Authenticate: Token realm="<auth_realm>"`.
"""

import hmac
import logging
import re
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from thingsapi.config import Settings
from thingsapi.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must reach our own 401 handler
bearer_scheme = HTTPBearer(auto_error=False)

_TOKEN_SCHEME = re.compile(r'^Token\s+(?:token=)?"?([^",\s]+)"?', re.IGNORECASE)


def extract_token(
    authorization: Optional[str],
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Pull the token out of a Bearer or Token Authorization header."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    if not authorization:
        return None
    match = _TOKEN_SCHEME.match(authorization.strip())
    return match.group(1) if match else None


def token_is_valid(token: str, accepted: list) -> bool:
    # Compare against every token so timing does not reveal which one matched
    valid = False
    for candidate in accepted:
        if hmac.compare_digest(token.encode("utf-8"), candidate.encode("utf-8")):
            valid = True
    return valid


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    Dependency guarding the API namespace.

    Returns:
        The accepted token, or None when authentication is disabled.

    Raises:
        UnauthorizedError: credentials missing or not recognised
    """
    config: Settings = request.app.state.settings
    if not config.auth_enabled:
        return None

    token = extract_token(request.headers.get("Authorization"), credentials)
    if token is None:
        raise UnauthorizedError(realm=config.auth_realm, context={"reason": "missing"})
    if not token_is_valid(token, config.api_tokens_list):
        logger.warning("Rejected API token for %s %s", request.method, request.url.path)
        raise UnauthorizedError(realm=config.auth_realm, context={"reason": "invalid"})

    request.state.api_token = token
    return token
