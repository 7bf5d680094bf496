"""
Router admin : réglages tarifaires, ouverture des réservations, comptes chauffeurs, tableau de bord.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from core.dependencies import require_admin
from database import db
from models.common import BookingStatus, UserRole
from models.pricing import BookingsToggle, PricingPolicy, PricingPolicyUpdate
from models.user import DriverCreate, DriverUpdate, User
from services.settings_service import AdminSettingsService, get_settings_service
from services.user_service import create_user, list_drivers, update_driver

router = APIRouter()


# ── Réglages tarifaires ───────────────────────────────────────────────────────
@router.get("/settings/pricing", response_model=PricingPolicy, summary="Politique tarifaire")
async def get_pricing_settings(
    _admin=Depends(require_admin),
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    return await settings_service.get_pricing_policy()


@router.put("/settings/pricing", response_model=PricingPolicy, summary="Remplacer la politique tarifaire")
async def replace_pricing_settings(
    body: PricingPolicy,
    _admin=Depends(require_admin),
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    return await settings_service.replace_pricing_policy(body)


@router.patch("/settings/pricing", response_model=PricingPolicy, summary="Modifier la politique tarifaire")
async def update_pricing_settings(
    body: PricingPolicyUpdate,
    _admin=Depends(require_admin),
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    return await settings_service.update_pricing_policy(body)


# ── Ouverture des réservations ────────────────────────────────────────────────
@router.get("/settings/bookings", response_model=BookingsToggle, summary="Réservations ouvertes ?")
async def get_bookings_setting(
    _admin=Depends(require_admin),
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    return BookingsToggle(bookings_enabled=await settings_service.bookings_enabled())


@router.put("/settings/bookings", response_model=BookingsToggle, summary="Ouvrir / fermer les réservations")
async def set_bookings_setting(
    body: BookingsToggle,
    _admin=Depends(require_admin),
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    enabled = await settings_service.set_bookings_enabled(body.bookings_enabled)
    return BookingsToggle(bookings_enabled=enabled)


# ── Comptes chauffeurs ──────────────────────────────────────────────────────
@router.post("/drivers", response_model=User, status_code=201, summary="Créer un compte chauffeur")
async def create_driver_account(body: DriverCreate, _admin=Depends(require_admin)):
    driver = await create_user(
        body,
        UserRole.DRIVER,
        driver_status="offline",
        license_number=body.license_number,
    )
    return User(**driver)


@router.get("/drivers", summary="Chauffeurs (pour l'affectation des courses)")
async def get_drivers(
    active_only: bool = Query(False, alias="activeOnly"),
    _admin=Depends(require_admin),
):
    drivers = await list_drivers(active_only)
    return {"drivers": [User(**d).model_dump(by_alias=True) for d in drivers]}


@router.patch("/drivers/{user_id}", response_model=User, summary="Modifier / désactiver un chauffeur")
async def update_driver_account(user_id: str, body: DriverUpdate, _admin=Depends(require_admin)):
    return await update_driver(user_id, body.model_dump(exclude_none=True))


# ── Tableau de bord ───────────────────────────────────────────────────────────
@router.get("/dashboard", summary="KPIs temps réel")
async def dashboard(_admin=Depends(require_admin)):
    now = datetime.now(timezone.utc)
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

    total_bookings = await db.bookings.count_documents({})
    bookings_today = await db.bookings.count_documents({"created_at": {"$gte": today_start}})
    pending        = await db.bookings.count_documents({"status": BookingStatus.PENDING.value})
    completed      = await db.bookings.count_documents({"status": BookingStatus.COMPLETED.value})
    cancelled      = await db.bookings.count_documents({"status": BookingStatus.CANCELLED.value})
    active_drivers = await db.users.count_documents({"role": UserRole.DRIVER.value, "is_active": True})

    # Chiffre d'affaires : somme des total_amount des courses terminées
    pipeline = [
        {"$match": {"status": BookingStatus.COMPLETED.value}},
        {"$group": {"_id": None, "total": {"$sum": "$total_amount"}}},
    ]
    revenue_result = await db.bookings.aggregate(pipeline).to_list(length=1)
    revenue = revenue_result[0]["total"] if revenue_result else 0.0

    return {
        "totalBookings": total_bookings,
        "bookingsToday": bookings_today,
        "pending":       pending,
        "completed":     completed,
        "cancelled":     cancelled,
        "activeDrivers": active_drivers,
        "revenueUsd":    revenue,
    }
