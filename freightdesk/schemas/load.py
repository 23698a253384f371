"""Pydantic schemas for loads, their patch type, and driver actions."""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import Field, ValidationInfo, field_validator

from freightdesk.models.load import PAYMENT_TERMS_DAYS, LoadStatus, ShippingType
from freightdesk.schemas.common import APIModel
from freightdesk.schemas.user import DriverBrief, UserBrief

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _text(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


def _payment_terms(v: int) -> int:
    if v not in PAYMENT_TERMS_DAYS:
        raise ValueError(f"Payment terms must be one of: {list(PAYMENT_TERMS_DAYS)}")
    return v


def _loading_time(v: str) -> str:
    v = v.strip()
    if not _TIME_RE.match(v):
        raise ValueError("Loading time must be HH:MM")
    return v


class LoadCreate(APIModel):
    pickup_location: str
    dropoff_location: str
    client_name: str
    client_price: float = Field(gt=0)
    driver_price: float = Field(default=0, ge=0)
    shipping_type: ShippingType = ShippingType.FTL
    load_weight: float = Field(default=0, ge=0)
    pallets: int | None = Field(default=None, ge=0)
    loading_date: date
    loading_time: str
    payment_terms: int
    expected_payout_date: date | None = None
    fuel: float = Field(default=0, ge=0)
    tolls: float = Field(default=0, ge=0)
    other_expenses: float = Field(default=0, ge=0)
    notes: str = ""
    driver_id: str | None = None

    @field_validator("pickup_location", "dropoff_location", "client_name")
    @classmethod
    def _required(cls, v: str, info: ValidationInfo) -> str:
        return _text(v, info.field_name.replace("_", " ").capitalize())

    @field_validator("payment_terms")
    @classmethod
    def _terms(cls, v: int) -> int:
        return _payment_terms(v)

    @field_validator("loading_time")
    @classmethod
    def _time(cls, v: str) -> str:
        return _loading_time(v)


class LoadUpdate(APIModel):
    """Merge-patch: only fields present in the request are applied."""

    pickup_location: str | None = None
    dropoff_location: str | None = None
    client_name: str | None = None
    client_price: float | None = Field(default=None, ge=0)
    driver_price: float | None = Field(default=None, ge=0)
    shipping_type: ShippingType | None = None
    load_weight: float | None = Field(default=None, ge=0)
    pallets: int | None = Field(default=None, ge=0)
    loading_date: date | None = None
    loading_time: str | None = None
    payment_terms: int | None = None
    expected_payout_date: date | None = None
    fuel: float | None = Field(default=None, ge=0)
    tolls: float | None = Field(default=None, ge=0)
    other_expenses: float | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("pickup_location", "dropoff_location", "client_name")
    @classmethod
    def _required(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is None:
            return None
        return _text(v, info.field_name.replace("_", " ").capitalize())

    @field_validator("payment_terms")
    @classmethod
    def _terms(cls, v: int | None) -> int | None:
        return _payment_terms(v) if v is not None else None

    @field_validator("loading_time")
    @classmethod
    def _time(cls, v: str | None) -> str | None:
        return _loading_time(v) if v is not None else None


class LoadRead(APIModel):
    id: str
    load_number: str
    pickup_location: str
    dropoff_location: str
    client_name: str
    client_price: float
    driver_price: float
    assigned_driver_id: str | None
    assigned_driver: DriverBrief | None
    shipping_type: ShippingType
    load_weight: float
    pallets: int | None
    loading_date: date
    loading_time: str
    payment_terms: int
    expected_payout_date: date | None
    fuel: float
    tolls: float
    other_expenses: float
    status: LoadStatus
    notes: str
    pod_image: str | None
    invoices: list[str]
    documents: list[str]
    created_by_id: str
    created_by: UserBrief | None
    created_at: datetime | None
    updated_at: datetime | None
    completed_at: datetime | None


class LoadEnvelope(APIModel):
    success: bool = True
    message: str | None = None
    load: LoadRead


class LoadList(APIModel):
    success: bool = True
    count: int
    loads: list[LoadRead]


class AssignRequest(APIModel):
    driver_id: str

    @field_validator("driver_id")
    @classmethod
    def _driver(cls, v: str) -> str:
        return _text(v, "Driver ID")


class ProofOfDeliveryRequest(APIModel):
    image: str


class DocumentsRequest(APIModel):
    invoices: list[str] = []
    documents: list[str] = []
