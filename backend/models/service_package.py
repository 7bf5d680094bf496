from datetime import datetime
from typing import Optional, List
from pydantic import Field, model_validator
from models.common import CamelModel


class ServicePackage(CamelModel):
    package_id:    str
    name:          str          # "Airport Special", "Disneyland Park & Hotel"
    description:   str = ""
    base_price:    float        # USD ; prix horaire si is_hourly
    is_hourly:     bool = False
    minimum_hours: Optional[float] = None
    duration:      Optional[int] = None     # minutes, indicatif
    vehicle_id:    Optional[str] = None
    image_url:     Optional[str] = None
    airports:      List[str] = []
    is_active:     bool = True
    created_at:    datetime
    updated_at:    datetime


class ServicePackageCreate(CamelModel):
    name:          str = Field(min_length=1)
    description:   str = ""
    base_price:    float = Field(gt=0)
    is_hourly:     bool = False
    minimum_hours: Optional[float] = None
    duration:      Optional[int] = None
    vehicle_id:    Optional[str] = None
    image_url:     Optional[str] = None
    airports:      List[str] = []
    is_active:     bool = True

    @model_validator(mode="after")
    def hourly_needs_minimum(self):
        if self.is_hourly and (self.minimum_hours is None or self.minimum_hours <= 0):
            raise ValueError("minimum_hours must be a positive number for hourly packages")
        if not self.is_hourly:
            self.minimum_hours = None
        return self


class ServicePackageUpdate(CamelModel):
    name:          Optional[str]   = Field(None, min_length=1)
    description:   Optional[str]   = None
    base_price:    Optional[float] = Field(None, gt=0)
    is_hourly:     Optional[bool]  = None
    minimum_hours: Optional[float] = Field(None, gt=0)
    duration:      Optional[int]   = None
    vehicle_id:    Optional[str]   = None
    image_url:     Optional[str]   = None
    airports:      Optional[List[str]] = None
    is_active:     Optional[bool]  = None
