"""
Router bookings : création de réservation, consultation, statuts, affectation chauffeur.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from core.dependencies import get_current_user, get_optional_user, require_admin, require_driver
from core.exceptions import forbidden_exception, not_found_exception
from database import db
from models.booking import AssignDriverRequest, Booking, BookingCreate, BookingStatusEvent, BookingStatusUpdate
from services.booking_service import (
    assign_driver,
    can_view,
    create_booking,
    get_status_history,
    list_query_for,
    transition_status,
)
from services.settings_service import AdminSettingsService, get_settings_service

router = APIRouter()


@router.post("", response_model=Booking, status_code=201, summary="Créer une réservation")
async def create_booking_endpoint(
    body: BookingCreate,
    current_user: Optional[dict] = Depends(get_optional_user),
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    return await create_booking(body, settings_service, customer=current_user)


@router.get("", summary="Mes réservations")
async def list_bookings(
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
    current_user: dict = Depends(get_current_user),
):
    query = list_query_for(current_user, status)
    cursor = db.bookings.find(query, {"_id": 0}).sort("pickup_time", -1).skip(skip).limit(limit)
    bookings = await cursor.to_list(length=limit)
    return {
        "bookings": [Booking(**b).model_dump(by_alias=True) for b in bookings],
        "total": await db.bookings.count_documents(query),
    }


@router.get("/{booking_id}", response_model=Booking, summary="Détail réservation")
async def get_booking(booking_id: str, current_user: dict = Depends(get_current_user)):
    booking = await db.bookings.find_one({"booking_id": booking_id}, {"_id": 0})
    if not booking:
        raise not_found_exception("Booking")
    if not can_view(booking, current_user):
        raise forbidden_exception()
    return booking


@router.get("/{booking_id}/history", summary="Historique des statuts")
async def booking_history(booking_id: str, current_user: dict = Depends(get_current_user)):
    booking = await db.bookings.find_one({"booking_id": booking_id}, {"_id": 0})
    if not booking:
        raise not_found_exception("Booking")
    if not can_view(booking, current_user):
        raise forbidden_exception()
    history = await get_status_history(booking_id)
    return {"history": [BookingStatusEvent(**h).model_dump(by_alias=True) for h in history]}


@router.put("/{booking_id}/status", response_model=Booking, summary="Changer le statut (chauffeur / admin)")
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    current_user: dict = Depends(require_driver),
):
    return await transition_status(booking_id, body.status, current_user, comment=body.comment)


@router.put("/{booking_id}/assign-driver", response_model=Booking, summary="Affecter un chauffeur (admin)")
async def assign_driver_endpoint(
    booking_id: str,
    body: AssignDriverRequest,
    admin: dict = Depends(require_admin),
):
    return await assign_driver(booking_id, body.driver_id, admin)
