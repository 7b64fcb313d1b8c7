# silkthread/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, Header, HTTPException, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from silkthread.core.config import get_settings

CART_SESSION_HEADER = "X-Cart-Session"

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _valid_session_id(raw: str | None) -> str | None:
    if not raw:
        return None
    try:
        return str(uuid.UUID(raw.strip()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {CART_SESSION_HEADER} header",
        )


def get_cart_owner(
    response: Response,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    cart_session: str | None = Header(default=None, alias=CART_SESSION_HEADER),
) -> str:
    """
    Resolve whose cart a request is about.

    Flow:
      1. Valid Supabase JWT => "user:<sub>" (cart follows the account).
      2. Else X-Cart-Session header => "guest:<uuid>".
      3. Else mint a new guest session and echo it in the
         X-Cart-Session response header so the client can keep it.

    Raises:
        HTTPException(401): token present but invalid / missing sub.
        HTTPException(400): malformed X-Cart-Session header.
    """
    if credentials is not None:
        payload = decode_access_token(credentials.credentials)
        sub = payload.get("sub")
        if not sub:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token missing sub",
            )
        return f"user:{sub}"

    session_id = _valid_session_id(cart_session)
    if session_id is None:
        session_id = str(uuid.uuid4())
    response.headers[CART_SESSION_HEADER] = session_id
    return f"guest:{session_id}"
