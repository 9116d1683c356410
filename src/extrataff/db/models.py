from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from extrataff.db.base import Base, TimestampMixin


class Establishment(TimestampMixin, Base):
    __tablename__ = "establishments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    establishment_type: Mapped[str] = mapped_column(String(60), default="autre", nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    department: Mapped[str | None] = mapped_column(String(3), nullable=True)

    subscription_status: Mapped[str] = mapped_column(String(20), default="freemium", nullable=False)
    subscription_plan: Mapped[str | None] = mapped_column(String(20), nullable=True)
    missions_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    missions_included_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Talent(TimestampMixin, Base):
    __tablename__ = "talents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    position_types: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    preferred_departments: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    min_hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)


class Mission(TimestampMixin, Base):
    __tablename__ = "missions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[str] = mapped_column(String(60), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="open", index=True, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="not_required", nullable=False)
    payment_session_id: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=Decimal("0"), nullable=False)
    department: Mapped[str | None] = mapped_column(String(3), nullable=True)
    location_fuzzy: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    location_exact: Mapped[str] = mapped_column(Text, default="", nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    comment: Mapped[str] = mapped_column(Text, default="", nullable=False)


class Application(TimestampMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("mission_id", "talent_id", name="uq_applications_mission_talent"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    mission_id: Mapped[int] = mapped_column(ForeignKey("missions.id", ondelete="CASCADE"), index=True)
    talent_id: Mapped[int] = mapped_column(ForeignKey("talents.id", ondelete="CASCADE"), index=True)
    status: Mapped[str] = mapped_column(String(20), default="interested", index=True, nullable=False)
    establishment_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    talent_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Notification(TimestampMixin, Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(60), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    link: Mapped[str | None] = mapped_column(String(255), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
