"""Bearer token helpers"""

import logging
import math
import time
from typing import Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_BUFFER_MS = 5000

def get_token_claims(token: str) -> dict:
    """
    Decode the payload of a JWT without verifying its signature.
    The portal never holds the signing key; the backend stays the authority.

    Args:
        token: JWT string (header.payload.signature)

    Returns:
        Claims dictionary

    Raises:
        JWTError: If the token is malformed or its payload is not a JSON object
    """
    if token.count(".") != 2:
        raise JWTError("Token must have three dot-separated segments")
    return jwt.get_unverified_claims(token)

def is_token_expired(
    token: Optional[str],
    now: Optional[float] = None,
    buffer_ms: int = TOKEN_EXPIRY_BUFFER_MS
) -> bool:
    """
    Check whether a bearer token should be treated as expired.

    Absent, malformed and undecodable tokens count as expired, as do
    tokens without an exp claim. Valid tokens expire buffer_ms before
    their exp to absorb clock skew.

    Args:
        token: JWT string or None
        now: Current time in seconds since epoch (defaults to time.time())
        buffer_ms: Safety buffer in milliseconds

    Returns:
        True if the token is expired or unusable, False otherwise
    """
    if not token:
        return True

    try:
        claims = get_token_claims(token)
    except (JWTError, ValueError, TypeError) as e:
        logger.debug(f"Token could not be decoded: {str(e)}")
        return True

    exp = claims.get("exp")
    if not exp or isinstance(exp, bool):
        return True

    try:
        expiration_ms = float(exp) * 1000
    except (TypeError, ValueError):
        return True

    if math.isnan(expiration_ms):
        return True

    current_ms = (time.time() if now is None else now) * 1000
    return current_ms >= expiration_ms - buffer_ms
