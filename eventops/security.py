# eventops/security.py
import hashlib
import hmac

from fastapi import Request, HTTPException, status

from eventops.config import get_settings

SESSION_ROLE_KEY = "role"

ROLE_ADMIN = "admin"
ROLE_GUEST = "guest"


def hash_password(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def verify_password(raw: str, stored: str) -> bool:
    """
    The configured admin password may be plain text or its SHA-256 hex digest;
    both forms are accepted. An empty configured password never matches.
    """
    raw = raw.strip()
    stored = stored.strip()

    if not stored or not raw:
        return False

    if hmac.compare_digest(raw, stored):
        return True

    return hmac.compare_digest(hash_password(raw), stored.lower())


def check_admin_password(password: str) -> bool:
    return verify_password(password, get_settings().admin_password)


def get_role(request: Request):
    role = request.session.get(SESSION_ROLE_KEY)
    if role in (ROLE_ADMIN, ROLE_GUEST):
        return role
    return None


def auth_status(request: Request) -> dict:
    role = get_role(request)
    return {
        "isAuthenticated": role is not None,
        "isGuest": role == ROLE_GUEST,
    }


def login_as(request: Request, role: str) -> None:
    request.session.clear()
    request.session[SESSION_ROLE_KEY] = role


def logout(request: Request) -> None:
    request.session.clear()


def require_admin(request: Request):
    """Mutations are refused to anonymous callers and to guests alike."""
    if get_role(request) != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return ROLE_ADMIN
