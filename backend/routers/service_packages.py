"""
Router service packages : forfaits (aéroport, parcs, événements) au prix fixe ou horaire.
"""
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from core.dependencies import require_admin
from core.exceptions import bad_request_exception, not_found_exception
from database import db
from models.service_package import ServicePackage, ServicePackageCreate, ServicePackageUpdate

router = APIRouter()


def _package_id() -> str:
    return f"pkg_{uuid.uuid4().hex[:12]}"


# ── Public ────────────────────────────────────────────────────────────────────
@router.get("", summary="Forfaits actifs (public)")
async def list_packages():
    cursor = db.service_packages.find({"is_active": True}, {"_id": 0})
    packages = await cursor.to_list(length=100)
    return {"packages": [ServicePackage(**p).model_dump(by_alias=True) for p in packages]}


@router.get("/{package_id}", response_model=ServicePackage, summary="Détail forfait")
async def get_package(package_id: str):
    package = await db.service_packages.find_one({"package_id": package_id}, {"_id": 0})
    if not package:
        raise not_found_exception("Service package")
    return package


# ── Admin ─────────────────────────────────────────────────────────────────────
@router.post("", response_model=ServicePackage, status_code=201, summary="Créer un forfait (admin)")
async def create_package(body: ServicePackageCreate, _admin=Depends(require_admin)):
    now = datetime.now(timezone.utc)
    package_doc = {
        "package_id": _package_id(),
        **body.model_dump(),
        "created_at": now,
        "updated_at": now,
    }
    await db.service_packages.insert_one(package_doc)
    return ServicePackage(**{k: v for k, v in package_doc.items() if k != "_id"})


@router.put("/{package_id}", response_model=ServicePackage, summary="Modifier un forfait (admin)")
async def update_package(
    package_id: str,
    body: ServicePackageUpdate,
    _admin=Depends(require_admin),
):
    existing = await db.service_packages.find_one({"package_id": package_id}, {"_id": 0})
    if not existing:
        raise not_found_exception("Service package")

    updates = body.model_dump(exclude_none=True)
    is_hourly = updates.get("is_hourly", existing.get("is_hourly", False))
    if is_hourly:
        minimum = updates.get("minimum_hours", existing.get("minimum_hours"))
        if not minimum or minimum <= 0:
            raise bad_request_exception("minimumHours must be a positive number for hourly packages")
    elif "minimum_hours" in updates:
        raise bad_request_exception("Cannot set minimumHours for non-hourly packages")
    else:
        updates["minimum_hours"] = None

    updates["updated_at"] = datetime.now(timezone.utc)
    await db.service_packages.update_one({"package_id": package_id}, {"$set": updates})
    return ServicePackage(**{**existing, **updates})


@router.delete("/{package_id}", summary="Supprimer un forfait (admin)")
async def delete_package(package_id: str, _admin=Depends(require_admin)):
    result = await db.service_packages.delete_one({"package_id": package_id})
    if result.deleted_count == 0:
        raise not_found_exception("Service package")
    return {"message": "Service package deleted"}
