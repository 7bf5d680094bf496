"""
Service de tarification des courses.

Formule (USD) :
  base       = forfait fixe | prix_horaire × max(heures, minimum_hours) | 0
  distance   = frais du palier [min, max)        si distanceFeeEnabled et paliers définis
             | distanceFee si distance > seuil   si distanceFeeEnabled sans palier
             + distance × perMileFee             si perMileFeeEnabled (cumulable)
  brut       = base + distance + majorations horaires + arrêts + sièges + feeRules
  sous_total = brut borné à [minFee, maxFee]     (maxFee = 0 → pas de plafond)
  total      = sous_total + pourboire            (pourboire espèces non débité)

compute_price() est pure : mêmes entrées → même montant. Les accès base de
données (forfait, distance Google) sont faits en amont par calculate_quote().
"""
import logging
from datetime import datetime
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from config import settings
from core.exceptions import bad_request_exception, not_found_exception
from database import db
from models.booking import Gratuity, QuoteResponse, StopIn, TripQuoteRequest
from models.common import GratuityType
from models.pricing import DistanceTier, PricingPolicy, TimeSurcharge, parse_clock
from services.fee_rules import apply_fee_rules
from services.google_maps_service import get_route_distance_miles

logger = logging.getLogger(__name__)


def _money(value: float) -> float:
    return round(value, 2)


# ── Base ──────────────────────────────────────────────────────────────────────

def base_amount(package: Optional[dict], hours: Optional[float]) -> float:
    if not package:
        return 0.0
    price = float(package.get("base_price") or 0.0)
    if package.get("is_hourly"):
        billed_hours = max(hours or 0.0, package.get("minimum_hours") or 0.0)
        return price * billed_hours
    return price


# ── Distance ──────────────────────────────────────────────────────────────────

def find_distance_tier(tiers: Sequence[DistanceTier], distance: float) -> Optional[DistanceTier]:
    """Palier tel que min <= distance < max. Au-delà de tous les paliers : None."""
    for tier in tiers:
        if distance >= tier.min_distance and (tier.max_distance is None or distance < tier.max_distance):
            return tier
    return None


def _distance_settings(
    policy: PricingPolicy,
    vehicle_id: Optional[str],
    package_id: Optional[str],
) -> tuple[float, float]:
    """(seuil, tarif au mile) effectifs, après surcharge véhicule / forfait éventuelle."""
    for entry in policy.vehicle_package_pricing:
        if entry.vehicle_id == vehicle_id and entry.package_id == package_id:
            return entry.distance_threshold, entry.per_mile_fee
    return policy.distance_threshold, policy.per_mile_fee


def distance_fees(
    policy: PricingPolicy,
    distance: float,
    vehicle_id: Optional[str] = None,
    package_id: Optional[str] = None,
) -> dict:
    threshold, per_mile = _distance_settings(policy, vehicle_id, package_id)
    fees = {"mode": "none", "tier_fee": 0.0, "threshold_fee": 0.0, "per_mile_fee": 0.0, "tier": None}

    if policy.distance_fee_enabled:
        if policy.distance_tiers:
            fees["mode"] = "tiered"
            tier = find_distance_tier(policy.distance_tiers, distance)
            if tier:
                fees["tier_fee"] = tier.fee
                fees["tier"] = tier.model_dump(by_alias=True)
        else:
            fees["mode"] = "threshold"
            if distance > threshold:
                fees["threshold_fee"] = policy.distance_fee

    if policy.per_mile_fee_enabled:
        fees["per_mile_fee"] = distance * per_mile
        fees["mode"] = "per_mile" if fees["mode"] == "none" else f"{fees['mode']}+per_mile"

    return fees


# ── Majorations horaires ──────────────────────────────────────────────────────

def local_pickup_time(pickup_time: datetime) -> datetime:
    """Heure locale de prise en charge. Un datetime naïf est déjà considéré local."""
    if pickup_time.tzinfo is None:
        return pickup_time
    return pickup_time.astimezone(ZoneInfo(settings.BUSINESS_TIMEZONE))


def _in_window(minute_of_day: int, start: int, end: int) -> bool:
    if start < end:
        return start <= minute_of_day < end
    # Fenêtre à cheval sur minuit (ex. 22:00 → 05:00)
    return minute_of_day >= start or minute_of_day < end


def matching_surcharges(surcharges: Sequence[TimeSurcharge], pickup_time: datetime) -> list[TimeSurcharge]:
    local = local_pickup_time(pickup_time)
    minute_of_day = local.hour * 60 + local.minute
    return [
        s for s in surcharges
        if _in_window(minute_of_day, parse_clock(s.start_time), parse_clock(s.end_time))
    ]


# ── Suppléments ───────────────────────────────────────────────────────────────

def stop_prices(stops: Sequence[StopIn], stop_price: float) -> list[float]:
    """Prix de chaque arrêt : son prix propre, sinon le stopPrice de la politique."""
    return [stop.price or stop_price for stop in stops]


# ── Plancher / plafond ────────────────────────────────────────────────────────

def clamp_total(total: float, min_fee: float, max_fee: float) -> float:
    if total < min_fee:
        total = min_fee
    if max_fee > 0 and total > max_fee:
        total = max_fee
    return max(total, 0.0)


# ── Pourboire ─────────────────────────────────────────────────────────────────

def gratuity_amount(gratuity: Gratuity, subtotal: float) -> tuple[float, bool]:
    """Retourne (montant, débité). Le pourboire espèces est enregistré mais jamais débité."""
    if gratuity.type == GratuityType.PERCENTAGE:
        percentage = gratuity.percentage
        if percentage is None:
            percentage = settings.DEFAULT_GRATUITY_PERCENTAGE
        return _money(subtotal * percentage / 100), True
    if gratuity.type == GratuityType.CUSTOM:
        return _money(gratuity.custom_amount or 0.0), True
    if gratuity.type == GratuityType.CASH:
        return _money(gratuity.custom_amount or 0.0), False
    return 0.0, False


# ── Point d'entrée principal ──────────────────────────────────────────────────

def compute_price(
    request: TripQuoteRequest,
    policy: PricingPolicy,
    package: Optional[dict] = None,
    distance_miles: Optional[float] = None,
) -> QuoteResponse:
    """
    Calcule le devis d'une course.
    `package` est le document forfait déjà chargé ; `distance_miles` prime sur
    la distance fournie dans la requête (distance calculée par Google).
    """
    distance = distance_miles if distance_miles is not None else (request.distance_miles or 0.0)
    package_id = package.get("package_id") if package else request.package_id

    base = base_amount(package, request.hours)
    dist = distance_fees(policy, distance, request.vehicle_id, package_id)

    surcharges = matching_surcharges(policy.time_surcharges, request.pickup_time)
    surcharge_total = sum(s.surcharge for s in surcharges)

    stops = stop_prices(request.stops, policy.stop_price)
    stop_total = sum(stops)
    car_seat_total = request.car_seats * policy.car_seat_price
    booster_total = request.booster_seats * policy.booster_seat_price

    local = local_pickup_time(request.pickup_time)
    fee_rule_total, applied_rules = apply_fee_rules(policy.fee_rules, {
        "distance":      distance,
        "hours":         request.hours or 0.0,
        "stops":         len(request.stops),
        "passengers":    request.passengers,
        "car_seats":     request.car_seats,
        "booster_seats": request.booster_seats,
        "pickup_hour":   local.hour,
        "pickup_minute": local.minute,
        "weekday":       local.weekday(),
        "vehicle_id":    request.vehicle_id,
        "package_id":    package_id,
        "base":          base,
    })

    raw_total = (
        base
        + dist["tier_fee"] + dist["threshold_fee"] + dist["per_mile_fee"]
        + surcharge_total
        + stop_total + car_seat_total + booster_total
        + fee_rule_total
    )
    subtotal = _money(clamp_total(raw_total, policy.min_fee, policy.max_fee))

    clamped_to = None
    if subtotal != _money(raw_total):
        clamped_to = "min" if raw_total < subtotal else "max"

    tip, tip_charged = gratuity_amount(request.gratuity, subtotal)
    total = _money(subtotal + tip) if tip_charged else subtotal

    breakdown = {
        "base":            _money(base),
        "distanceMode":    dist["mode"],
        "tier":            dist["tier"],
        "tierFee":         _money(dist["tier_fee"]),
        "thresholdFee":    _money(dist["threshold_fee"]),
        "perMileFee":      _money(dist["per_mile_fee"]),
        "surcharges":      [s.model_dump(by_alias=True) for s in surcharges],
        "surchargeTotal":  _money(surcharge_total),
        "stopFees":        [_money(p) for p in stops],
        "stopTotal":       _money(stop_total),
        "carSeatFees":     _money(car_seat_total),
        "boosterSeatFees": _money(booster_total),
        "feeRules":        applied_rules,
        "feeRuleFees":     _money(fee_rule_total),
        "rawTotal":        _money(raw_total),
        "clampedTo":       clamped_to,
        "gratuityType":    request.gratuity.type.value,
        "gratuityCharged": tip_charged,
    }

    return QuoteResponse(
        subtotal=subtotal,
        gratuity_amount=tip,
        total=total,
        currency=settings.CURRENCY,
        distance_miles=_money(distance),
        breakdown=breakdown,
    )


# ── Accès base de données ─────────────────────────────────────────────────────

async def resolve_package(package_id: Optional[str]) -> Optional[dict]:
    if not package_id:
        return None
    package = await db.service_packages.find_one({"package_id": package_id}, {"_id": 0})
    if not package:
        raise not_found_exception("Service package")
    if not package.get("is_active", True):
        raise bad_request_exception("This service package is not available")
    return package


async def resolve_distance(request: TripQuoteRequest) -> float:
    """Distance fournie par le client, sinon itinéraire Google (départ → arrêts → arrivée)."""
    if request.distance_miles is not None:
        return request.distance_miles
    locations = [request.pickup_location, *[s.location for s in request.stops], request.dropoff_location]
    miles = await get_route_distance_miles(locations)
    if miles is None:
        logger.warning("Distance inconnue pour le devis, fallback %.1f mi", settings.DEFAULT_DISTANCE_MILES)
        return settings.DEFAULT_DISTANCE_MILES
    return miles


async def calculate_quote(request: TripQuoteRequest, policy: PricingPolicy) -> QuoteResponse:
    package = await resolve_package(request.package_id)
    distance = await resolve_distance(request)
    return compute_price(request, policy, package=package, distance_miles=distance)
