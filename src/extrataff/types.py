from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MissionStatus = Literal["open", "filled", "closed", "pending", "cancelled"]
PaymentStatus = Literal["not_required", "pending", "paid"]
ApplicationStatus = Literal["interested", "accepted", "rejected", "confirmed", "completed", "cancelled"]
SubscriptionStatus = Literal["freemium", "active", "expired"]
SubscriptionPlan = Literal["club"]
ConfirmingParty = Literal["establishment", "talent"]
PricingRule = Literal[
    "club_included",
    "club_extra",
    "subscription",
    "freemium_quota",
    "urgent_list",
    "standard_list",
]
EventKind = Literal[
    "new_mission",
    "new_application",
    "application_accepted",
    "application_rejected",
    "application_confirmed",
    "application_cancelled",
]

TERMINAL_APPLICATION_STATUSES: frozenset[str] = frozenset({"rejected", "confirmed", "completed", "cancelled"})
BOOKED_APPLICATION_STATUSES: frozenset[str] = frozenset({"confirmed", "accepted"})


class Talent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: str = ""
    first_name: str = ""
    position_types: frozenset[str] = Field(default_factory=frozenset)
    preferred_departments: frozenset[str] = Field(default_factory=frozenset)
    min_hourly_rate: Decimal | None = None


class SubscriptionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SubscriptionStatus = "freemium"
    plan: SubscriptionPlan | None = None
    missions_used: int = Field(default=0, ge=0)
    missions_included_used: bool = False

    @property
    def is_club(self) -> bool:
        return self.status == "active" and self.plan == "club"


class Establishment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: str = ""
    name: str = ""
    address: str | None = None
    department: str | None = None
    subscription: SubscriptionState = Field(default_factory=SubscriptionState)


class Mission(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    establishment_id: int
    position: str
    start_date: date | None = None
    end_date: date | None = None
    is_urgent: bool = False
    status: MissionStatus = "open"
    payment_status: PaymentStatus = "not_required"
    price: Decimal = Decimal("0")
    department: str | None = None
    establishment_department: str | None = None
    location_fuzzy: str = ""
    hourly_rate: Decimal | None = None

    @model_validator(mode="after")
    def validate_dates(self) -> "Mission":
        if self.end_date is not None and self.start_date is None:
            raise ValueError("end_date requires a start_date")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    @property
    def effective_department(self) -> str | None:
        return self.department or self.establishment_department

    @property
    def date_range(self) -> tuple[date, date] | None:
        """Inclusive day range, or ``None`` when the mission is undated."""
        if self.start_date is None:
            return None
        return self.start_date, self.end_date or self.start_date


class MissionDraft(BaseModel):
    position: str
    start_date: date
    end_date: date | None = None
    hourly_rate: Decimal | None = None
    department: str | None = None

    @field_validator("position")
    @classmethod
    def validate_position(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("position is required")
        return value

    @model_validator(mode="after")
    def validate_dates(self) -> "MissionDraft":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class Application(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    mission_id: int
    talent_id: int
    status: ApplicationStatus = "interested"
    establishment_confirmed: bool = False
    talent_confirmed: bool = False
    confirmed_at: datetime | None = None

    @model_validator(mode="after")
    def validate_confirmation(self) -> "Application":
        booked = self.status in {"confirmed", "completed"}
        if booked and self.confirmed_at is None:
            raise ValueError(f"status '{self.status}' requires confirmed_at")
        if not booked and self.confirmed_at is not None:
            raise ValueError(f"confirmed_at must be empty in status '{self.status}'")
        if booked and not (self.establishment_confirmed and self.talent_confirmed):
            raise ValueError("a booked application needs both confirmations")
        if self.status in {"interested", "rejected"} and (self.establishment_confirmed or self.talent_confirmed):
            raise ValueError(f"confirmation flags cannot be set in status '{self.status}'")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_APPLICATION_STATUSES


class DomainEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    mission_id: int
    application_id: int | None = None
    talent_id: int | None = None
    match_score: int | None = None


class PricingDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: PricingRule
    price: Decimal
    is_urgent: bool
    consumes_included_mission: bool = False
    increments_missions_used: bool = False

    @property
    def is_free(self) -> bool:
        return self.price <= 0

    @property
    def requires_payment(self) -> bool:
        return self.price > 0

    @property
    def mission_type(self) -> str:
        return "urgent" if self.is_urgent else "standard"


class PaymentSession(BaseModel):
    url: str = ""
    session_id: str = ""
    error: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.url) and not self.error


class MissionCreationResult(BaseModel):
    mission: Mission
    decision: PricingDecision
    checkout_url: str | None = None

    @property
    def requires_payment(self) -> bool:
        return self.decision.requires_payment


class NotificationMessage(BaseModel):
    user_id: str
    type: str
    title: str
    content: str
    link: str | None = None
