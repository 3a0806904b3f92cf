"""
Clerk integration: session token verification (python-jose) and Backend API user creation (httpx).
Verification uses CLERK_JWT_KEY when set (no network); otherwise the instance JWKS, fetched once per process.
"""
import logging
import secrets
import threading
import time

import httpx
from jose import JWTError, jwt

from school_api.config import settings
from school_api.errors import ClerkError, Conflict

logger = logging.getLogger(__name__)

_ALGORITHMS = ["RS256"]

_jwks: dict | None = None
_jwks_lock = threading.Lock()


def _fetch_jwks() -> dict:
    global _jwks
    with _jwks_lock:
        if _jwks is None:
            if not settings.clerk_secret_key:
                raise ClerkError("CLERK_SECRET_KEY is not configured")
            resp = httpx.get(
                f"{settings.clerk_api_url.rstrip('/')}/jwks",
                headers={"Authorization": f"Bearer {settings.clerk_secret_key}"},
                timeout=10.0,
            )
            if resp.status_code >= 400:
                raise ClerkError(f"Clerk JWKS request failed: {resp.status_code}")
            _jwks = resp.json()
        return _jwks


def reset_jwks_cache() -> None:
    global _jwks
    with _jwks_lock:
        _jwks = None


def _signing_key(token: str):
    if settings.clerk_jwt_key:
        return settings.clerk_jwt_key.replace("\\n", "\n")
    kid = jwt.get_unverified_header(token).get("kid")
    for key in _fetch_jwks().get("keys", []):
        if key.get("kid") == kid:
            return key
    raise JWTError("No matching signing key")


def verify_token(token: str) -> dict | None:
    """Return verified claims, or None if the token is invalid, expired or for another party."""
    try:
        claims = jwt.decode(token, _signing_key(token), algorithms=_ALGORITHMS, options={"verify_aud": False})
    except JWTError as e:
        logger.debug("Clerk token rejected: %s", e)
        return None
    except (ClerkError, httpx.HTTPError) as e:
        logger.warning("Clerk token verification unavailable: %s", e)
        return None
    parties = settings.authorized_parties
    if parties and claims.get("azp") and claims["azp"] not in parties:
        logger.debug("Clerk token rejected: azp %s not authorized", claims.get("azp"))
        return None
    if not claims.get("sub"):
        return None
    return claims


def create_user(email: str, display_name: str, password: str) -> str:
    """Create the credential record in Clerk; return its user id (our uid)."""
    if not settings.clerk_secret_key:
        if settings.is_development:
            uid = f"dev-user-{int(time.time() * 1000)}-{secrets.token_hex(5)}"
            logger.info("Development mode: creating user %s without Clerk", uid)
            return uid
        raise ClerkError("CLERK_SECRET_KEY is not configured")
    try:
        resp = httpx.post(
            f"{settings.clerk_api_url.rstrip('/')}/users",
            json={
                "email_address": [email],
                "first_name": display_name,
                "password": password,
                "skip_password_checks": True,
            },
            headers={"Authorization": f"Bearer {settings.clerk_secret_key}"},
            timeout=15.0,
        )
    except httpx.HTTPError as e:
        raise ClerkError(f"Clerk request failed: {e}") from e
    if resp.status_code == 422 and "form_identifier_exists" in resp.text:
        raise Conflict("User with this email already exists")
    if resp.status_code >= 400:
        logger.error("Clerk create user failed: %s %s", resp.status_code, resp.text[:500])
        raise ClerkError("Failed to create user in auth provider")
    return resp.json()["id"]
