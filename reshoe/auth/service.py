from typing import Any, Dict
from reshoe.utils.security import AuthUser, Role
from .repository import get_user_from_access_token as _repo_get_user_from_token

def determine_role(metadata: Dict[str, Any] | None) -> Role:
    """Mappe user_metadata.role vers l'énumération fermée Role (inconnu => customer)."""
    role_lower = str((metadata or {}).get("role", "")).strip().lower()
    try:
        return Role(role_lower)
    except ValueError:
        return Role.CUSTOMER

def get_user_from_token(access_token: str) -> AuthUser:
    """Normalise l'utilisateur issu de supabase.auth.get_user(access_token):
    - id, email, nom (user_metadata.name|full_name)
    - rôle calculé via determine_role
    """
    raw = _repo_get_user_from_token(access_token)
    metadata = raw.get("user_metadata") or {}
    return AuthUser(
        id=str(raw.get("id") or ""),
        email=raw.get("email"),
        role=determine_role(metadata),
        name=metadata.get("name") or metadata.get("full_name"),
    )
