from datetime import datetime
from typing import Optional, List
from pydantic import Field
from models.common import CamelModel, VehicleStatus


class Vehicle(CamelModel):
    vehicle_id:     str
    name:           str          # "Executive Sprinter"
    make:           str
    model:          str
    capacity:       int
    price_per_hour: float
    features:       List[str] = []
    description:    Optional[str] = None
    image_urls:     List[str] = []
    year:           Optional[int] = None
    license_plate:  Optional[str] = None
    color:          Optional[str] = None
    status:         VehicleStatus = VehicleStatus.ACTIVE
    created_at:     datetime
    updated_at:     datetime


class VehicleCreate(CamelModel):
    name:           str = Field(min_length=1)
    make:           str
    model:          str
    capacity:       int = Field(gt=0)
    price_per_hour: float = Field(ge=0)
    features:       List[str] = []
    description:    Optional[str] = None
    image_urls:     List[str] = []
    year:           Optional[int] = None
    license_plate:  Optional[str] = None
    color:          Optional[str] = None


class VehicleUpdate(CamelModel):
    name:           Optional[str]   = None
    capacity:       Optional[int]   = Field(None, gt=0)
    price_per_hour: Optional[float] = Field(None, ge=0)
    features:       Optional[List[str]] = None
    description:    Optional[str]   = None
    image_urls:     Optional[List[str]] = None
    color:          Optional[str]   = None
    status:         Optional[VehicleStatus] = None
