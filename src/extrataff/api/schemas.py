from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from extrataff.types import (
    ApplicationStatus,
    ConfirmingParty,
    MissionStatus,
    PaymentStatus,
    PricingRule,
    SubscriptionPlan,
    SubscriptionStatus,
)


class EstablishmentCreateRequest(BaseModel):
    user_id: str
    name: str
    address: str | None = None
    establishment_type: str = "autre"


class SubscriptionResponse(BaseModel):
    status: SubscriptionStatus
    plan: SubscriptionPlan | None
    missions_used: int
    missions_included_used: bool


class EstablishmentResponse(BaseModel):
    id: int
    user_id: str
    name: str
    address: str | None
    department: str | None
    subscription: SubscriptionResponse


class TalentCreateRequest(BaseModel):
    user_id: str
    first_name: str = ""
    last_name: str = ""
    position_types: list[str] = Field(default_factory=list)
    preferred_departments: list[str] = Field(default_factory=list)
    min_hourly_rate: Decimal | None = None


class TalentResponse(BaseModel):
    id: int
    user_id: str
    first_name: str
    position_types: list[str]
    preferred_departments: list[str]
    min_hourly_rate: Decimal | None


class MissionCreateRequest(BaseModel):
    establishment_id: int
    position: str
    start_date: date
    end_date: date | None = None
    hourly_rate: Decimal | None = None
    department: str | None = None
    comment: str = ""


class MissionRelaunchRequest(BaseModel):
    start_date: date
    end_date: date | None = None

    @model_validator(mode="after")
    def validate_dates(self) -> "MissionRelaunchRequest":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class MissionResponse(BaseModel):
    id: int
    establishment_id: int
    position: str
    start_date: date | None
    end_date: date | None
    is_urgent: bool
    status: MissionStatus
    payment_status: PaymentStatus
    price: Decimal
    department: str | None
    location_fuzzy: str
    hourly_rate: Decimal | None


class PricingResponse(BaseModel):
    rule: PricingRule
    price: Decimal
    is_urgent: bool
    requires_payment: bool


class MissionCreateResponse(BaseModel):
    mission: MissionResponse
    pricing: PricingResponse
    checkout_url: str | None = None


class ApplicationCreateRequest(BaseModel):
    talent_id: int
    match_score: int | None = Field(default=None, ge=0, le=100)


class ApplicationConfirmRequest(BaseModel):
    party: ConfirmingParty


class ApplicationResponse(BaseModel):
    id: int
    mission_id: int
    talent_id: int
    status: ApplicationStatus
    establishment_confirmed: bool
    talent_confirmed: bool
    confirmed_at: datetime | None


class PaymentVerifyRequest(BaseModel):
    mission_id: int
    session_id: str | None = None


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    content: str
    link: str | None
    read: bool
