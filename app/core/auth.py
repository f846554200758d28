"""
Authentication utilities for Supabase JWT verification.

The frontend signs in with supabase.auth.signInWithPassword() and sends the
JWT in the Authorization header. This module verifies the JWT and extracts
the landlord's user id, which scopes every read and write in the services.
"""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from typing import Optional
import requests
from app.core.config import settings

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
security = HTTPBearer()

ASYMMETRIC_ALGORITHMS = ["ES256", "RS256"]


class User:
    """User model extracted from JWT token."""
    def __init__(self, user_id: str, email: Optional[str] = None, role: Optional[str] = None):
        self.id = user_id
        self.email = email
        self.role = role or "user"  # Default role


# Cache for JWKS keys (to avoid fetching on every request)
_jwks_cache = None


def get_supabase_jwks():
    """
    Fetch Supabase's JSON Web Key Set (JWKS) for JWT verification.

    Newer Supabase projects sign with an asymmetric key (ES256 or RS256);
    the JWKS endpoint exposes the public half.

    Returns:
        dict: JWKS containing public keys for token verification
    """
    global _jwks_cache

    if _jwks_cache is not None:
        return _jwks_cache

    try:
        jwks_url = f"{settings.SUPABASE_URL}/auth/v1/.well-known/jwks.json"
        response = requests.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        return _jwks_cache
    except requests.RequestException as e:
        logger.exception("Failed to fetch JWKS from Supabase")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to fetch JWKS from Supabase: {str(e)}",
        )


def verify_token(token: str) -> dict:
    """
    Verify Supabase JWT token and return decoded payload.

    Legacy projects sign with the shared HS256 secret (SUPABASE_JWT_SECRET);
    newer ones use ES256/RS256 and are checked against the JWKS.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        header = jwt.get_unverified_header(token)
        if header.get("alg") == "HS256":
            key, algorithms = settings.SUPABASE_JWT_SECRET, ["HS256"]
        else:
            key, algorithms = get_supabase_jwks(), ASYMMETRIC_ALGORITHMS

        return jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience="authenticated",  # Supabase uses "authenticated" as audience
            options={"verify_aud": True},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    FastAPI dependency to get current authenticated user from JWT token.

    Usage in route:
        @router.get("/protected")
        def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    payload = verify_token(credentials.credentials)

    # Supabase JWT structure: {"sub": "user_id", "email": "user@example.com", "role": "authenticated", ...}
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return User(user_id=user_id, email=payload.get("email"), role=payload.get("role"))
