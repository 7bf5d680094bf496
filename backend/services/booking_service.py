"""
Service réservations : création (prix recalculé côté serveur), machine d'états, historique.
"""
import logging
import uuid
from datetime import datetime, timezone, timedelta
from typing import Optional

from core.exceptions import (
    bad_request_exception,
    bookings_disabled_exception,
    forbidden_exception,
    invalid_transition_exception,
    not_found_exception,
)
from database import db
from models.booking import BookingCreate
from models.common import BookingStatus, GratuityType, PaymentStatus, UserRole
from services.pricing_service import compute_price, resolve_distance, resolve_package
from services.settings_service import AdminSettingsService

logger = logging.getLogger(__name__)

# ── Machine d'états ───────────────────────────────────────────────────────────
ALLOWED_TRANSITIONS: dict[BookingStatus, list[BookingStatus]] = {
    BookingStatus.PENDING: [
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
    ],
    BookingStatus.CONFIRMED: [
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    ],
    BookingStatus.IN_PROGRESS: [
        BookingStatus.COMPLETED,
    ],
    # États terminaux
    BookingStatus.COMPLETED: [],
    BookingStatus.CANCELLED: [],
}

DEFAULT_PACKAGE_NAME = "Custom Package"


def _booking_id() -> str:
    return f"bkg_{uuid.uuid4().hex[:12]}"


def _history_id() -> str:
    return f"hst_{uuid.uuid4().hex[:12]}"


def can_transition(from_status: BookingStatus, to_status: BookingStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


async def _record_status(
    booking_id: str,
    to_status: BookingStatus,
    from_status: Optional[BookingStatus] = None,
    changed_by: Optional[str] = None,
    comment: Optional[str] = None,
) -> None:
    await db.booking_status_history.insert_one({
        "history_id":  _history_id(),
        "booking_id":  booking_id,
        "from_status": from_status.value if from_status else None,
        "status":      to_status.value,
        "changed_by":  changed_by,
        "comment":     comment,
        "created_at":  datetime.now(timezone.utc),
    })


async def create_booking(
    body: BookingCreate,
    settings_service: AdminSettingsService,
    customer: Optional[dict] = None,
) -> dict:
    if not await settings_service.bookings_enabled():
        raise bookings_disabled_exception()

    policy = await settings_service.get_pricing_policy()
    package = await resolve_package(body.package_id)
    distance = await resolve_distance(body)
    quote = compute_price(body, policy, package=package, distance_miles=distance)

    vehicle_name = None
    if body.vehicle_id:
        vehicle = await db.vehicles.find_one({"vehicle_id": body.vehicle_id}, {"_id": 0, "name": 1})
        if not vehicle:
            raise not_found_exception("Vehicle")
        vehicle_name = vehicle.get("name")

    now = datetime.now(timezone.utc)
    dropoff_time = None
    if body.hours and body.hours > 0:
        dropoff_time = body.pickup_time + timedelta(hours=body.hours)

    stop_fees = quote.breakdown["stopFees"]
    booking_doc = {
        "booking_id":           _booking_id(),
        "customer_id":          customer["user_id"] if customer else None,
        "customer_name":        body.customer_name,
        "customer_email":       body.customer_email,
        "customer_phone":       body.customer_phone,
        "pickup_location":      body.pickup_location,
        "dropoff_location":     body.dropoff_location,
        "pickup_time":          body.pickup_time,
        "dropoff_time":         dropoff_time,
        "vehicle_id":           body.vehicle_id,
        "vehicle_name":         vehicle_name,
        "package_id":           body.package_id,
        "package_name":         package["name"] if package else (DEFAULT_PACKAGE_NAME if body.package_id else None),
        "driver_id":            None,
        "hours":                body.hours if body.hours and body.hours > 0 else None,
        "distance_miles":       quote.distance_miles,
        "passengers":           body.passengers,
        "car_seats":            body.car_seats,
        "booster_seats":        body.booster_seats,
        "stops": [
            {"location": stop.location, "order": stop.order, "price": fee}
            for stop, fee in zip(body.stops, stop_fees)
        ],
        "price":                quote.subtotal,
        "gratuity": {
            "type":          body.gratuity.type.value,
            "percentage":    body.gratuity.percentage if body.gratuity.type == GratuityType.PERCENTAGE else None,
            "custom_amount": body.gratuity.custom_amount,
            "amount":        quote.gratuity_amount,
        },
        "total_amount":         quote.total,
        "currency":             quote.currency,
        "price_breakdown":      quote.breakdown,
        "status":               BookingStatus.PENDING.value,
        "payment_status":       PaymentStatus.PENDING.value,
        "notes":                body.notes,
        "special_instructions": body.special_instructions,
        "created_at":           now,
        "updated_at":           now,
    }
    await db.bookings.insert_one(booking_doc)
    await _record_status(
        booking_doc["booking_id"],
        BookingStatus.PENDING,
        changed_by=booking_doc["customer_id"],
        comment="Booking created",
    )

    logger.info(
        f"Réservation {booking_doc['booking_id']} créée : {quote.total:.2f} {quote.currency} "
        f"({quote.distance_miles} mi, {body.customer_email})"
    )
    booking_doc.pop("_id", None)
    return booking_doc


def can_view(booking: dict, user: dict) -> bool:
    role = user.get("role")
    if role == UserRole.ADMIN.value:
        return True
    if role == UserRole.DRIVER.value and booking.get("driver_id") == user["user_id"]:
        return True
    return (
        booking.get("customer_id") == user["user_id"]
        or booking.get("customer_email") == user.get("email")
    )


def list_query_for(user: dict, status: Optional[str] = None) -> dict:
    role = user.get("role")
    if role == UserRole.ADMIN.value:
        query: dict = {}
    elif role == UserRole.DRIVER.value:
        query = {"driver_id": user["user_id"]}
    else:
        # Client : réservations liées au compte ou faites avec son email sans être connecté
        query = {"$or": [{"customer_id": user["user_id"]}, {"customer_email": user.get("email")}]}
    if status:
        query["status"] = status
    return query


async def transition_status(
    booking_id: str,
    new_status: BookingStatus,
    actor: dict,
    comment: Optional[str] = None,
) -> dict:
    booking = await db.bookings.find_one({"booking_id": booking_id}, {"_id": 0})
    if not booking:
        raise not_found_exception("Booking")

    if actor.get("role") == UserRole.DRIVER.value and booking.get("driver_id") != actor["user_id"]:
        raise forbidden_exception("This ride is not assigned to you")

    current = BookingStatus(booking["status"])
    if not can_transition(current, new_status):
        raise invalid_transition_exception(current.value, new_status.value)

    now = datetime.now(timezone.utc)
    await db.bookings.update_one(
        {"booking_id": booking_id},
        {"$set": {"status": new_status.value, "updated_at": now}},
    )
    await _record_status(booking_id, new_status, from_status=current, changed_by=actor["user_id"], comment=comment)
    logger.info(f"Réservation {booking_id} : {current.value} → {new_status.value} par {actor['user_id']}")

    booking.update({"status": new_status.value, "updated_at": now})
    return booking


async def assign_driver(booking_id: str, driver_id: str, admin: dict) -> dict:
    booking = await db.bookings.find_one({"booking_id": booking_id}, {"_id": 0})
    if not booking:
        raise not_found_exception("Booking")
    if booking["status"] in (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value):
        raise bad_request_exception("Cannot assign a driver to a closed booking")

    driver = await db.users.find_one(
        {"user_id": driver_id, "role": UserRole.DRIVER.value, "is_active": True}, {"_id": 0},
    )
    if not driver:
        raise not_found_exception("Driver")

    now = datetime.now(timezone.utc)
    updates = {"driver_id": driver_id, "updated_at": now}
    if booking["status"] == BookingStatus.PENDING.value:
        # L'affectation d'un chauffeur confirme la course
        updates["status"] = BookingStatus.CONFIRMED.value
    await db.bookings.update_one({"booking_id": booking_id}, {"$set": updates})

    if "status" in updates:
        await _record_status(
            booking_id,
            BookingStatus.CONFIRMED,
            from_status=BookingStatus.PENDING,
            changed_by=admin["user_id"],
            comment=f"Driver {driver_id} assigned",
        )
    logger.info(f"Chauffeur {driver_id} affecté à la réservation {booking_id}")

    booking.update(updates)
    return booking


async def get_status_history(booking_id: str) -> list[dict]:
    cursor = db.booking_status_history.find({"booking_id": booking_id}, {"_id": 0}).sort("created_at", 1)
    return await cursor.to_list(length=200)
