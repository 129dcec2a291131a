from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from fleetlink.models.association_type import AssociationType
from fleetlink.models.driver import DriverStatus


class DriverCreateRequest(BaseModel):
    cpf:           str
    fullName:      str
    dateOfBirth:   Optional[date] = None
    phone:         Optional[str] = None
    email:         Optional[EmailStr] = None
    cnhNumber:     Optional[str] = None
    cnhCategory:   Optional[str] = None
    cnhExpiration: Optional[date] = None
    status:        Optional[DriverStatus] = None

    @field_validator("cpf")
    @classmethod
    def check_cpf(cls, v):
        v = v.strip()
        if len(v) != 11 or not v.isdigit(): raise ValueError("CPF must have exactly 11 digits")
        return v

    @field_validator("fullName")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if not (3 <= len(v) <= 255): raise ValueError("Full name must have between 3 and 255 characters")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v is not None and len(v) > 20: raise ValueError("Phone cannot exceed 20 characters")
        return v

    @field_validator("cnhNumber")
    @classmethod
    def check_cnh(cls, v):
        if v is not None and len(v) > 11: raise ValueError("CNH number cannot exceed 11 characters")
        return v

    @field_validator("cnhCategory")
    @classmethod
    def check_cnh_category(cls, v):
        if v is not None and len(v) > 5: raise ValueError("CNH category cannot exceed 5 characters")
        return v


class DriverUpdateRequest(BaseModel):
    # cpf is the natural key and is not editable
    fullName:      Optional[str] = None
    dateOfBirth:   Optional[date] = None
    phone:         Optional[str] = None
    email:         Optional[EmailStr] = None
    cnhNumber:     Optional[str] = None
    cnhCategory:   Optional[str] = None
    cnhExpiration: Optional[date] = None
    status:        Optional[DriverStatus] = None


class DriverQueryParams(BaseModel):
    search:              Optional[str] = None
    status:              Optional[DriverStatus] = None
    associationType:     Optional[AssociationType] = None
    associatedAccountId: Optional[str] = None
    page:                int = 1
    limit:               int = 10
    sortBy:              str = "fullName"
    sortOrder:           str = "asc"
