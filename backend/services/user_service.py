"""
Service comptes : création commune aux clients (inscription) et aux chauffeurs (back-office).
"""
import logging
import uuid
from datetime import datetime, timezone

from core.exceptions import conflict_exception, not_found_exception
from core.security import hash_password
from database import db
from models.common import UserRole
from models.user import UserRegister

logger = logging.getLogger(__name__)

_PUBLIC_PROJECTION = {"_id": 0, "password_hash": 0}


def _user_id() -> str:
    return f"usr_{uuid.uuid4().hex[:12]}"


async def create_user(body: UserRegister, role: UserRole, **extra) -> dict:
    """Insère le compte et retourne le document sans hash. 409 si l'email existe déjà."""
    if await db.users.find_one({"email": body.email}, {"_id": 1}):
        raise conflict_exception("An account already exists with this email")

    now = datetime.now(timezone.utc)
    user_doc = {
        "user_id":       _user_id(),
        "email":         body.email,
        "password_hash": hash_password(body.password),
        "first_name":    body.first_name,
        "last_name":     body.last_name,
        "phone":         body.phone,
        "role":          role.value,
        "is_active":     True,
        **extra,
        "created_at":    now,
        "updated_at":    now,
    }
    await db.users.insert_one(user_doc)
    logger.info(f"Nouveau compte {role.value} {user_doc['user_id']}")

    user_doc.pop("_id", None)
    user_doc.pop("password_hash")
    return user_doc


async def list_drivers(active_only: bool = False) -> list[dict]:
    query: dict = {"role": UserRole.DRIVER.value}
    if active_only:
        query["is_active"] = True
    cursor = db.users.find(query, _PUBLIC_PROJECTION).sort("last_name", 1)
    return await cursor.to_list(length=500)


async def update_driver(user_id: str, updates: dict) -> dict:
    query = {"user_id": user_id, "role": UserRole.DRIVER.value}
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await db.users.update_one(query, {"$set": updates})
    if result.matched_count == 0:
        raise not_found_exception("Driver")
    logger.info(f"Chauffeur {user_id} modifié : {', '.join(sorted(updates))}")
    return await db.users.find_one(query, _PUBLIC_PROJECTION)
