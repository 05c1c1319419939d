import logging
import re
import secrets

from fastapi import Request, Response

from app.config import get_settings

logger = logging.getLogger(__name__)

# Tokens are opaque, but anything outside this shape is treated as absent
_TOKEN_SHAPE = re.compile(r"^[A-Za-z0-9_-]{8,128}$")


def new_session_token() -> str:
    return secrets.token_hex(16)


def get_session_id(request: Request, response: Response) -> str:
    """Resolve the shopper's session token, minting one on first contact.

    The header wins over the cookie so non-browser clients can pin a session.
    A new token is handed back both as a cookie and in the response header.
    """
    settings = get_settings()
    token = request.headers.get(settings.SESSION_HEADER_NAME) or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token and _TOKEN_SHAPE.match(token):
        return token

    token = new_session_token()
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    response.headers[settings.SESSION_HEADER_NAME] = token
    logger.info("Issued new session token")
    return token
