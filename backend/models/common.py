from enum import Enum
from typing import Annotated
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Modèles exposés au site de réservation et au back-office React :
    camelCase sur le fil (distanceTiers, perMileFee…), snake_case en Python et en base.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Email validé par email-validator, puis mis en minuscules (clé de recherche des comptes et réservations)
Email = Annotated[
    EmailStr,
    BeforeValidator(lambda v: v.strip() if isinstance(v, str) else v),
    AfterValidator(str.lower),
]


class UserRole(str, Enum):
    CUSTOMER = "customer"
    DRIVER   = "driver"
    ADMIN    = "admin"


class BookingStatus(str, Enum):
    PENDING     = "pending"
    CONFIRMED   = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"
    CANCELLED   = "cancelled"


class PaymentStatus(str, Enum):
    PENDING  = "pending"
    PAID     = "paid"
    REFUNDED = "refunded"


class GratuityType(str, Enum):
    NONE       = "none"
    PERCENTAGE = "percentage"
    CUSTOM     = "custom"
    CASH       = "cash"        # réglé au chauffeur, jamais débité


class VehicleStatus(str, Enum):
    ACTIVE      = "active"
    MAINTENANCE = "maintenance"
    INACTIVE    = "inactive"
