from datetime import datetime
from typing import Optional, List
from pydantic import Field, field_validator, model_validator
from models.common import CamelModel
from services.fee_rules import compile_condition


def parse_clock(value: str) -> int:
    """ "HH:MM" → minutes depuis minuit. Lève ValueError si le format est invalide."""
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError):
        raise ValueError(f"'{value}' is not a valid HH:MM time")
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"'{value}' is not a valid HH:MM time")
    return hours * 60 + minutes


class DistanceTier(CamelModel):
    min_distance: float = Field(ge=0)                 # miles, inclus
    max_distance: Optional[float] = Field(None, gt=0)  # exclu ; None = palier ouvert
    fee:          float = Field(ge=0)

    @model_validator(mode="after")
    def max_above_min(self):
        if self.max_distance is not None and self.max_distance <= self.min_distance:
            raise ValueError("maxDistance must be greater than minDistance")
        return self


class TimeSurcharge(CamelModel):
    start_time: str                 # "HH:MM", inclus
    end_time:   str                 # "HH:MM", exclu ; peut passer minuit (22:00 → 05:00)
    surcharge:  float = Field(ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def must_be_clock_time(cls, v: str) -> str:
        parse_clock(v)
        return v.strip()

    @model_validator(mode="after")
    def window_not_empty(self):
        if parse_clock(self.start_time) == parse_clock(self.end_time):
            raise ValueError("startTime and endTime must differ")
        return self


class VehiclePackagePricing(CamelModel):
    """Remplace seuil et tarif au mile pour un couple véhicule / forfait."""
    vehicle_id:         str
    package_id:         str
    distance_threshold: float = Field(ge=0)
    per_mile_fee:       float = Field(ge=0)


class FeeRule(CamelModel):
    condition: str
    fee:       float = Field(ge=0)

    @field_validator("condition")
    @classmethod
    def condition_must_compile(cls, v: str) -> str:
        compile_condition(v)
        return v.strip()


def _default_tiers() -> List[DistanceTier]:
    return [
        DistanceTier(min_distance=0,  max_distance=40,  fee=0),
        DistanceTier(min_distance=40, max_distance=60,  fee=49),
        DistanceTier(min_distance=60, max_distance=100, fee=99),
    ]


def _default_surcharges() -> List[TimeSurcharge]:
    return [TimeSurcharge(start_time="17:00", end_time="19:00", surcharge=20)]


class PricingPolicy(CamelModel):
    """Politique tarifaire : document singleton édité depuis le back-office."""
    # Frais de distance
    distance_fee_enabled:    bool  = True
    distance_threshold:      float = Field(40.0, ge=0)   # miles
    distance_fee:            float = Field(49.0, ge=0)
    per_mile_fee_enabled:    bool  = False
    per_mile_fee:            float = Field(2.0, ge=0)
    distance_tiers:          List[DistanceTier] = Field(default_factory=_default_tiers)
    # Plancher / plafond (max_fee = 0 → pas de plafond)
    min_fee:                 float = Field(0.0, ge=0)
    max_fee:                 float = Field(1000.0, ge=0)
    # Suppléments
    stop_price:              float = Field(25.0, ge=0)
    car_seat_price:          float = Field(15.0, ge=0)
    booster_seat_price:      float = Field(10.0, ge=0)
    time_surcharges:         List[TimeSurcharge] = Field(default_factory=_default_surcharges)
    vehicle_package_pricing: List[VehiclePackagePricing] = []
    fee_rules:               List[FeeRule] = []
    updated_at:              Optional[datetime] = None

    @model_validator(mode="after")
    def tiers_must_not_overlap(self):
        tiers = sorted(self.distance_tiers, key=lambda t: t.min_distance)
        for previous, current in zip(tiers, tiers[1:]):
            if previous.max_distance is None:
                raise ValueError("only the last distance tier may be open-ended")
            if current.min_distance < previous.max_distance:
                raise ValueError(
                    f"distance tiers overlap: [{previous.min_distance}, {previous.max_distance}) "
                    f"and [{current.min_distance}, {current.max_distance})"
                )
        return self

    @model_validator(mode="after")
    def min_below_max(self):
        if self.max_fee > 0 and self.min_fee > self.max_fee:
            raise ValueError("minFee cannot exceed maxFee")
        return self


class PricingPolicyUpdate(CamelModel):
    distance_fee_enabled:    Optional[bool]  = None
    distance_threshold:      Optional[float] = None
    distance_fee:            Optional[float] = None
    per_mile_fee_enabled:    Optional[bool]  = None
    per_mile_fee:            Optional[float] = None
    distance_tiers:          Optional[List[DistanceTier]] = None
    min_fee:                 Optional[float] = None
    max_fee:                 Optional[float] = None
    stop_price:              Optional[float] = None
    car_seat_price:          Optional[float] = None
    booster_seat_price:      Optional[float] = None
    time_surcharges:         Optional[List[TimeSurcharge]] = None
    vehicle_package_pricing: Optional[List[VehiclePackagePricing]] = None
    fee_rules:               Optional[List[FeeRule]] = None


class BookingsToggle(CamelModel):
    bookings_enabled: bool


class PublicSettings(PricingPolicy):
    bookings_enabled: bool = True
