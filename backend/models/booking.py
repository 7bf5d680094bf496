from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import Field, field_validator
from models.common import CamelModel, BookingStatus, Email, PaymentStatus, GratuityType


class StopIn(CamelModel):
    location: str = Field(min_length=1)
    order:    Optional[int] = None
    price:    Optional[float] = Field(None, ge=0)   # absent ou 0 → stopPrice de la politique


class Gratuity(CamelModel):
    type:          GratuityType = GratuityType.NONE
    percentage:    Optional[float] = Field(None, ge=0, le=100)
    custom_amount: Optional[float] = Field(None, ge=0)


class TripQuoteRequest(CamelModel):
    pickup_location:  str = Field(min_length=1)
    dropoff_location: str = Field(min_length=1)
    distance_miles:   Optional[float] = Field(None, ge=0)  # absent → Google Directions
    pickup_time:      datetime
    vehicle_id:       Optional[str] = None
    package_id:       Optional[str] = None
    hours:            Optional[float] = Field(None, ge=0)
    stops:            List[StopIn] = []
    passengers:       int = Field(1, ge=1)
    car_seats:        int = Field(0, ge=0)
    booster_seats:    int = Field(0, ge=0)
    gratuity:         Gratuity = Field(default_factory=Gratuity)

    @field_validator("stops")
    @classmethod
    def number_stops(cls, stops: List[StopIn]) -> List[StopIn]:
        # Ordres explicites uniques ; les arrêts sans ordre suivent, dans l'ordre de la liste
        explicit = [stop.order for stop in stops if stop.order is not None]
        if len(explicit) != len(set(explicit)):
            raise ValueError("stop orders must be unique")
        next_order = max(explicit, default=0)
        for stop in stops:
            if stop.order is None:
                next_order += 1
                stop.order = next_order
        return sorted(stops, key=lambda s: s.order)


class QuoteResponse(CamelModel):
    subtotal:        float        # après plancher / plafond
    gratuity_amount: float = 0.0
    total:           float        # montant débité (pourboire espèces exclu)
    currency:        str = "USD"
    distance_miles:  float = 0.0
    breakdown:       Dict[str, Any] = {}


class BookingCreate(TripQuoteRequest):
    customer_name:        str = Field(min_length=1)
    customer_email:       Email
    customer_phone:       str = Field(min_length=7)
    notes:                Optional[str] = None
    special_instructions: Optional[str] = None


class BookingStop(CamelModel):
    location: str
    order:    int
    price:    float


class BookingGratuity(CamelModel):
    type:          GratuityType = GratuityType.NONE
    percentage:    Optional[float] = None
    custom_amount: Optional[float] = None
    amount:        float = 0.0


class Booking(CamelModel):
    booking_id:           str
    customer_id:          Optional[str] = None
    customer_name:        str
    customer_email:       str
    customer_phone:       str
    pickup_location:      str
    dropoff_location:     str
    pickup_time:          datetime
    dropoff_time:         Optional[datetime] = None
    vehicle_id:           Optional[str] = None
    vehicle_name:         Optional[str] = None
    package_id:           Optional[str] = None
    package_name:         Optional[str] = None
    driver_id:            Optional[str] = None
    hours:                Optional[float] = None
    distance_miles:       float = 0.0
    passengers:           int = 1
    car_seats:            int = 0
    booster_seats:        int = 0
    stops:                List[BookingStop] = []
    # Prix
    price:                float              # sous-total après plancher / plafond
    gratuity:             BookingGratuity = Field(default_factory=BookingGratuity)
    total_amount:         float
    currency:             str = "USD"
    price_breakdown:      Dict[str, Any] = {}
    # Statuts
    status:               BookingStatus = BookingStatus.PENDING
    payment_status:       PaymentStatus = PaymentStatus.PENDING
    notes:                Optional[str] = None
    special_instructions: Optional[str] = None
    # Timestamps
    created_at:           datetime
    updated_at:           datetime


class BookingStatusUpdate(CamelModel):
    status:  BookingStatus
    comment: Optional[str] = None


class AssignDriverRequest(CamelModel):
    driver_id: str


class BookingStatusEvent(CamelModel):
    history_id:  str
    booking_id:  str
    from_status: Optional[BookingStatus] = None
    status:      BookingStatus
    changed_by:  Optional[str] = None
    comment:     Optional[str] = None
    created_at:  datetime
