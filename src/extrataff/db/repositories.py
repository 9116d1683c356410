from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from sqlalchemy import and_, case, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from extrataff import types as domain
from extrataff.core.errors import DuplicateApplication
from extrataff.db.models import Application, Establishment, Mission, Notification, Talent

CounterKind = Literal["included", "quota"]


def to_talent(row: Talent) -> domain.Talent:
    return domain.Talent(
        id=row.id,
        user_id=row.user_id,
        first_name=row.first_name,
        position_types=frozenset(row.position_types or []),
        preferred_departments=frozenset(row.preferred_departments or []),
        min_hourly_rate=row.min_hourly_rate,
    )


def to_establishment(row: Establishment) -> domain.Establishment:
    return domain.Establishment(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        address=row.address,
        department=row.department,
        subscription=domain.SubscriptionState(
            status=row.subscription_status,
            plan=row.subscription_plan,
            missions_used=row.missions_used,
            missions_included_used=row.missions_included_used,
        ),
    )


def to_mission(row: Mission, establishment_department: str | None = None) -> domain.Mission:
    return domain.Mission(
        id=row.id,
        establishment_id=row.establishment_id,
        position=row.position,
        start_date=row.start_date,
        end_date=row.end_date,
        is_urgent=row.is_urgent,
        status=row.status,
        payment_status=row.payment_status,
        price=row.price,
        department=row.department,
        establishment_department=establishment_department,
        location_fuzzy=row.location_fuzzy,
        hourly_rate=row.hourly_rate,
    )


def to_application(row: Application) -> domain.Application:
    return domain.Application(
        id=row.id,
        mission_id=row.mission_id,
        talent_id=row.talent_id,
        status=row.status,
        establishment_confirmed=row.establishment_confirmed,
        talent_confirmed=row.talent_confirmed,
        confirmed_at=row.confirmed_at,
    )


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # Establishments

    def create_establishment(
        self,
        *,
        user_id: str,
        name: str,
        address: str | None = None,
        department: str | None = None,
        establishment_type: str = "autre",
    ) -> Establishment:
        establishment = Establishment(
            user_id=user_id,
            name=name,
            address=address,
            department=department,
            establishment_type=establishment_type,
        )
        self.session.add(establishment)
        self.session.commit()
        self.session.refresh(establishment)
        return establishment

    def get_establishment(self, establishment_id: int) -> Establishment | None:
        return self.session.get(Establishment, establishment_id)

    def update_subscription(
        self,
        establishment_id: int,
        *,
        status: str | None = None,
        plan: str | None = None,
        missions_used: int | None = None,
        missions_included_used: bool | None = None,
    ) -> Establishment:
        establishment = self.session.get(Establishment, establishment_id)
        if not establishment:
            raise ValueError(f"establishment {establishment_id} not found")

        if status is not None:
            establishment.subscription_status = status
            if status != "active":
                establishment.subscription_plan = None
        if plan is not None:
            establishment.subscription_plan = plan
        if missions_used is not None:
            establishment.missions_used = missions_used
        if missions_included_used is not None:
            establishment.missions_included_used = missions_included_used

        self.session.commit()
        self.session.refresh(establishment)
        return establishment

    # Talents

    def create_talent(
        self,
        *,
        user_id: str,
        first_name: str = "",
        last_name: str = "",
        position_types: Iterable[str] = (),
        preferred_departments: Iterable[str] = (),
        min_hourly_rate: Decimal | None = None,
    ) -> Talent:
        talent = Talent(
            user_id=user_id,
            first_name=first_name,
            last_name=last_name,
            position_types=sorted(set(position_types)),
            preferred_departments=sorted(set(preferred_departments)),
            min_hourly_rate=min_hourly_rate,
        )
        self.session.add(talent)
        self.session.commit()
        self.session.refresh(talent)
        return talent

    def get_talent(self, talent_id: int) -> Talent | None:
        return self.session.get(Talent, talent_id)

    def list_talents(self) -> list[Talent]:
        return list(self.session.scalars(select(Talent).order_by(Talent.id.asc())).all())

    # Missions

    def create_mission(
        self,
        *,
        establishment_id: int,
        position: str,
        start_date: date | None,
        end_date: date | None = None,
        is_urgent: bool = False,
        status: str = "open",
        payment_status: str = "not_required",
        price: Decimal = Decimal("0"),
        department: str | None = None,
        location_fuzzy: str = "",
        location_exact: str = "",
        hourly_rate: Decimal | None = None,
        comment: str = "",
        consume: CounterKind | None = None,
        freemium_quota: int = 0,
    ) -> Mission | None:
        """Insert a mission, consuming a usage counter in the same transaction.

        Returns ``None`` when the counter guard no longer holds (another
        creation consumed it first); nothing is written in that case.
        """
        if consume is not None:
            counter = self._counter_update(establishment_id, consume, freemium_quota)
            if self.session.execute(counter).rowcount != 1:
                self.session.rollback()
                return None

        mission = Mission(
            establishment_id=establishment_id,
            position=position,
            start_date=start_date,
            end_date=end_date,
            is_urgent=is_urgent,
            status=status,
            payment_status=payment_status,
            price=price,
            department=department,
            location_fuzzy=location_fuzzy,
            location_exact=location_exact,
            hourly_rate=hourly_rate,
            comment=comment,
        )
        self.session.add(mission)
        self.session.commit()
        self.session.refresh(mission)
        return mission

    def _counter_update(self, establishment_id: int, consume: CounterKind, freemium_quota: int) -> Any:
        statement = update(Establishment).where(Establishment.id == establishment_id)
        if consume == "included":
            statement = statement.where(Establishment.missions_included_used.is_(False)).values(
                missions_included_used=True
            )
        else:
            statement = statement.where(Establishment.missions_used < freemium_quota).values(
                missions_used=Establishment.missions_used + 1
            )
        return statement.execution_options(synchronize_session=False)

    def get_mission(self, mission_id: int) -> Mission | None:
        return self.session.get(Mission, mission_id)

    def list_missions(
        self,
        *,
        status: str | None = None,
        establishment_id: int | None = None,
        mission_ids: Iterable[int] | None = None,
    ) -> list[Mission]:
        statement = select(Mission)
        if status is not None:
            statement = statement.where(Mission.status == status)
        if establishment_id is not None:
            statement = statement.where(Mission.establishment_id == establishment_id)
        if mission_ids is not None:
            statement = statement.where(Mission.id.in_(list(mission_ids)))
        statement = statement.order_by(Mission.created_at.desc(), Mission.id.desc())
        return list(self.session.scalars(statement).all())

    def update_mission(self, mission_id: int, **values: Any) -> Mission:
        mission = self.session.get(Mission, mission_id)
        if not mission:
            raise ValueError(f"mission {mission_id} not found")
        for key, value in values.items():
            setattr(mission, key, value)
        self.session.commit()
        self.session.refresh(mission)
        return mission

    def transition_mission(
        self,
        mission_id: int,
        *,
        expected: Iterable[str],
        payment_expected: Iterable[str] | None = None,
        **values: Any,
    ) -> bool:
        condition = and_(Mission.id == mission_id, Mission.status.in_(list(expected)))
        if payment_expected is not None:
            condition = and_(condition, Mission.payment_status.in_(list(payment_expected)))
        statement = (
            update(Mission)
            .where(condition)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        changed = self.session.execute(statement).rowcount == 1
        self.session.commit()
        return changed

    def delete_mission(self, mission_id: int) -> None:
        self.session.execute(delete(Mission).where(Mission.id == mission_id))
        self.session.commit()

    def mission_model(self, mission: Mission) -> domain.Mission:
        establishment = self.session.get(Establishment, mission.establishment_id)
        return to_mission(mission, establishment.department if establishment else None)

    def mission_models(self, missions: Iterable[Mission]) -> list[domain.Mission]:
        missions = list(missions)
        establishment_ids = {mission.establishment_id for mission in missions}
        departments: dict[int, str | None] = {}
        if establishment_ids:
            rows = self.session.execute(
                select(Establishment.id, Establishment.department).where(Establishment.id.in_(establishment_ids))
            )
            departments = {row.id: row.department for row in rows}
        return [to_mission(mission, departments.get(mission.establishment_id)) for mission in missions]

    # Applications

    def create_application(self, *, mission_id: int, talent_id: int) -> Application:
        application = Application(mission_id=mission_id, talent_id=talent_id, status="interested")
        self.session.add(application)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateApplication(mission_id, talent_id) from exc
        self.session.refresh(application)
        return application

    def get_application(self, application_id: int) -> Application | None:
        return self.session.get(Application, application_id)

    def list_applications(
        self,
        *,
        talent_id: int | None = None,
        mission_id: int | None = None,
    ) -> list[Application]:
        statement = select(Application)
        if talent_id is not None:
            statement = statement.where(Application.talent_id == talent_id)
        if mission_id is not None:
            statement = statement.where(Application.mission_id == mission_id)
        statement = statement.order_by(Application.created_at.desc(), Application.id.desc())
        return list(self.session.scalars(statement).all())

    def set_application_status(self, application_id: int, *, expected: str, status: str) -> Application | None:
        statement = (
            update(Application)
            .where(and_(Application.id == application_id, Application.status == expected))
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        changed = self.session.execute(statement).rowcount == 1
        self.session.commit()
        return self.session.get(Application, application_id) if changed else None

    def confirm_application(
        self,
        application_id: int,
        party: domain.ConfirmingParty,
        now: datetime,
    ) -> Application | None:
        """Set one party's confirmation flag in a single conditional UPDATE.

        When the other party's flag is already set, the same statement moves
        the row to ``confirmed`` and stamps ``confirmed_at``. Returns ``None``
        if the row was not ``accepted`` at write time.
        """
        own = f"{party}_confirmed"
        other = Application.talent_confirmed if party == "establishment" else Application.establishment_confirmed

        statement = (
            update(Application)
            .where(and_(Application.id == application_id, Application.status == "accepted"))
            .values(
                {
                    own: True,
                    "status": case((other.is_(True), "confirmed"), else_=Application.status),
                    "confirmed_at": case((other.is_(True), now), else_=Application.confirmed_at),
                }
            )
            .execution_options(synchronize_session=False)
        )
        changed = self.session.execute(statement).rowcount == 1
        self.session.commit()
        return self.session.get(Application, application_id) if changed else None

    def delete_application(self, application_id: int, *, expected: str) -> bool:
        statement = delete(Application).where(
            and_(Application.id == application_id, Application.status == expected)
        )
        deleted = self.session.execute(statement).rowcount == 1
        self.session.commit()
        return deleted

    # Notifications

    def create_notification(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        content: str,
        link: str | None = None,
    ) -> Notification:
        notification = Notification(user_id=user_id, type=type, title=title, content=content, link=link)
        self.session.add(notification)
        self.session.commit()
        self.session.refresh(notification)
        return notification

    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> list[Notification]:
        statement = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            statement = statement.where(Notification.read.is_(False))
        statement = statement.order_by(Notification.id.desc())
        return list(self.session.scalars(statement).all())
