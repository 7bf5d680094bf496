from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.security import verify_access_token
from core.exceptions import credentials_exception, forbidden_exception
from database import db
from models.common import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


async def _user_from_token(token: str) -> Optional[dict]:
    payload = verify_access_token(token)
    if not payload:
        return None
    return await db.users.find_one({"user_id": payload["sub"]}, {"_id": 0, "password_hash": 0})


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    if not credentials:
        raise credentials_exception()
    user = await _user_from_token(credentials.credentials)
    if not user:
        raise credentials_exception()
    if not user.get("is_active", True):
        raise forbidden_exception("Account disabled")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[dict]:
    """Réservation sans compte : l'utilisateur est rattaché seulement si un token valide est fourni."""
    if not credentials:
        return None
    user = await _user_from_token(credentials.credentials)
    if user and user.get("is_active", True):
        return user
    return None


def require_role(*roles: UserRole):
    """
    Dépendance qui vérifie que l'utilisateur connecté possède l'un des rôles donnés.
    Usage : Depends(require_role(UserRole.ADMIN))
    """
    async def _check(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("role") not in [r.value for r in roles]:
            raise forbidden_exception()
        return current_user
    return _check


# Raccourcis pratiques
require_admin = require_role(UserRole.ADMIN)
require_driver = require_role(UserRole.DRIVER, UserRole.ADMIN)
