"""
Authentication: Clerk session tokens verified with an RS256 key pair generated per test run,
resolution of the caller's AppUser, role gates and the development bypass.
"""
import time

import pytest

try:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa
    from jose import jwt

    from school_api.config import settings
    from school_api.services import clerk
    _DEPS_LOADED = True
except ImportError:
    _DEPS_LOADED = False

pytestmark = pytest.mark.skipif(not _DEPS_LOADED, reason="python-jose/cryptography not installed (pip install -e .[test])")


@pytest.fixture(scope="module")
def key_pair():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def sign(key_pair, monkeypatch):
    """Configure CLERK_JWT_KEY and return a function that signs claims into a session token."""
    private_pem, public_pem = key_pair
    # Stored the way it usually sits in .env: one line with escaped newlines.
    monkeypatch.setattr(settings, "clerk_jwt_key", public_pem.replace("\n", "\\n"))
    monkeypatch.setattr(settings, "clerk_authorized_parties", "")

    def _sign(sub="clerk-student", ttl=300, **claims):
        now = int(time.time())
        payload = {"sub": sub, "iat": now, "nbf": now - 5, "exp": now + ttl, **claims}
        return jwt.encode(payload, private_pem, algorithm="RS256")

    return _sign


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_verify_token_returns_claims(sign):
    claims = clerk.verify_token(sign(sub="user_123", email="a@b.co"))
    assert claims["sub"] == "user_123"
    assert claims["email"] == "a@b.co"


def test_verify_token_rejects_expired_and_garbage(sign):
    assert clerk.verify_token(sign(ttl=-60)) is None
    assert clerk.verify_token("not.a.token") is None


def test_verify_token_checks_authorized_party(sign, monkeypatch):
    monkeypatch.setattr(settings, "clerk_authorized_parties", "https://school.example.com")
    assert clerk.verify_token(sign(azp="https://school.example.com")) is not None
    assert clerk.verify_token(sign(azp="https://evil.example.com")) is None


def test_verify_token_rejects_foreign_key(sign):
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = other.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    forged = jwt.encode({"sub": "clerk-admin", "exp": int(time.time()) + 300}, pem, algorithm="RS256")
    assert clerk.verify_token(forged) is None


def test_missing_token_is_401(api):
    response = api.get("/api/users/profile")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Access token is missing"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_is_401(api, sign):
    response = api.get("/api/users/profile", headers=_bearer(sign(ttl=-60)))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_valid_token_resolves_profile(api, users, sign):
    response = api.get("/api/users/profile", headers=_bearer(sign(sub="clerk-teacher")))
    assert response.status_code == 200
    assert response.json()["data"]["id"] == users["teacher"]["id"]


def test_role_comes_from_profile_not_token(api, users, sign):
    """A student token carrying a forged role claim is still a student."""
    token = sign(sub="clerk-student", role="ADMIN")
    response = api.get("/api/users/admin/stats", headers=_bearer(token))
    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


def test_unknown_subject_is_treated_as_student(api, users, sign):
    token = sign(sub="clerk-newcomer")
    assert api.get("/api/users/profile", headers=_bearer(token)).status_code == 404
    assert api.get("/api/users/admin/stats", headers=_bearer(token)).status_code == 403


def test_deactivated_account_is_403(api, users, hygraph, sign):
    hygraph.stores["AppUser"][users["student"]["id"]]["isActive"] = False
    response = api.get("/api/users/profile", headers=_bearer(sign(sub="clerk-student")))
    assert response.status_code == 403
    assert response.json()["message"] == "Account is deactivated"


def test_admin_token_passes_admin_gate(api, users, sign):
    response = api.get("/api/users/admin/stats", headers=_bearer(sign(sub="clerk-admin")))
    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["totalUsers"] == 6
    assert stats["usersByRole"]["TEACHER"] == 2


def test_dev_bypass_acts_as_admin(api, users, monkeypatch):
    monkeypatch.setattr(settings, "clerk_dev_bypass", True)
    response = api.get("/api/users/admin/stats")
    assert response.status_code == 200


def test_dev_bypass_ignored_in_production(api, users, monkeypatch):
    monkeypatch.setattr(settings, "clerk_dev_bypass", True)
    monkeypatch.setattr(settings, "env", "production")
    assert api.get("/api/users/admin/stats").status_code == 401
