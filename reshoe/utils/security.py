from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from fastapi import Request, HTTPException, Depends


class Role(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


@dataclass(frozen=True)
class AuthUser:
    """Identité vérifiée par le fournisseur d'identité (Supabase Auth), transmise aux services."""
    id: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_seller(self) -> bool:
        return self.role is Role.SELLER


def bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_user(request: Request) -> AuthUser:
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    try:
        # Délégué au service Auth
        from reshoe.auth.service import get_user_from_token as _svc_get_user_from_token
        user = _svc_get_user_from_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not user.id:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return user


def require_user(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    return user


def require_roles(*roles: Role) -> Callable[[AuthUser], AuthUser]:
    """Dépendance FastAPI: autorise uniquement les rôles listés (comparaison sur l'énumération)."""
    allowed = frozenset(roles)

    def _dep(user: AuthUser = Depends(require_user)) -> AuthUser:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Accès interdit")
        return user
    return _dep


def require_admin(user: AuthUser = Depends(require_user)) -> AuthUser:
    if user.role is not Role.ADMIN:
        raise HTTPException(status_code=403, detail="Accès interdit")
    return user


def require_seller(user: AuthUser = Depends(require_user)) -> AuthUser:
    if user.role is not Role.SELLER:
        raise HTTPException(status_code=403, detail="Réservé aux vendeurs")
    return user
