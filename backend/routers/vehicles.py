"""
Router vehicles : flotte affichée sur le site et sélectionnable à la réservation.
"""
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from core.dependencies import require_admin
from core.exceptions import not_found_exception
from database import db
from models.common import VehicleStatus
from models.vehicle import Vehicle, VehicleCreate, VehicleUpdate

router = APIRouter()


def _vehicle_id() -> str:
    return f"veh_{uuid.uuid4().hex[:12]}"


@router.get("", summary="Véhicules actifs (public)")
async def list_vehicles():
    cursor = db.vehicles.find({"status": VehicleStatus.ACTIVE.value}, {"_id": 0})
    vehicles = await cursor.to_list(length=100)
    return {"vehicles": [Vehicle(**v).model_dump(by_alias=True) for v in vehicles]}


@router.get("/{vehicle_id}", response_model=Vehicle, summary="Détail véhicule")
async def get_vehicle(vehicle_id: str):
    vehicle = await db.vehicles.find_one({"vehicle_id": vehicle_id}, {"_id": 0})
    if not vehicle:
        raise not_found_exception("Vehicle")
    return vehicle


@router.post("", response_model=Vehicle, status_code=201, summary="Ajouter un véhicule (admin)")
async def create_vehicle(body: VehicleCreate, _admin=Depends(require_admin)):
    now = datetime.now(timezone.utc)
    vehicle_doc = {
        "vehicle_id": _vehicle_id(),
        **body.model_dump(),
        "status":     VehicleStatus.ACTIVE.value,
        "created_at": now,
        "updated_at": now,
    }
    await db.vehicles.insert_one(vehicle_doc)
    return Vehicle(**{k: v for k, v in vehicle_doc.items() if k != "_id"})


@router.put("/{vehicle_id}", response_model=Vehicle, summary="Modifier un véhicule (admin)")
async def update_vehicle(
    vehicle_id: str,
    body: VehicleUpdate,
    _admin=Depends(require_admin),
):
    updates = body.model_dump(exclude_none=True, mode="json")
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await db.vehicles.update_one({"vehicle_id": vehicle_id}, {"$set": updates})
    if result.matched_count == 0:
        raise not_found_exception("Vehicle")
    return await db.vehicles.find_one({"vehicle_id": vehicle_id}, {"_id": 0})
