from datetime import date
from decimal import Decimal

import pytest

from extrataff.core.errors import (
    DuplicateApplication,
    IneligibleMission,
    InvalidStateTransition,
    MarketplaceError,
    MissingAddress,
    MissingEstablishmentProfile,
    PaymentSessionFailure,
)
from extrataff.core.marketplace import MarketplaceService
from extrataff.db.session import SessionLocal
from extrataff.types import MissionDraft, PricingDecision

from fakes import CLOCK, FakeGateway, RecordingNotifier

ADDRESS = "12 Rue de la Paix, 69001 Lyon"


def _service(db, gateway: FakeGateway | None = None, notifier: RecordingNotifier | None = None) -> MarketplaceService:
    return MarketplaceService(db, clock=CLOCK, payments=gateway or FakeGateway(), notifier=notifier)


def _draft(start: date = date(2025, 3, 10), **kwargs) -> MissionDraft:
    return MissionDraft(position="serveur", start_date=start, **kwargs)


def test_first_mission_is_free_then_paid() -> None:
    gateway = FakeGateway()
    with SessionLocal() as db:
        service = _service(db, gateway)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        assert establishment.department == "69"

        free = service.create_mission(establishment.id, _draft())
        assert free.decision.rule == "freemium_quota"
        assert free.mission.status == "open"
        assert free.mission.payment_status == "not_required"
        assert free.mission.location_fuzzy == "Lyon (69)"
        assert service.get_establishment(establishment.id).subscription.missions_used == 1

        paid = service.create_mission(establishment.id, _draft())
        assert paid.decision.rule == "standard_list"
        assert paid.mission.status == "pending"
        assert paid.mission.price == Decimal("9.90")
        assert paid.checkout_url == f"https://checkout.test/{paid.mission.id}"
        assert gateway.sessions[-1]["mission_type"] == "standard"
        assert service.get_establishment(establishment.id).subscription.missions_used == 1


def test_mission_creation_requires_profile_and_address() -> None:
    with SessionLocal() as db:
        service = _service(db)
        with pytest.raises(MissingEstablishmentProfile):
            service.create_mission(999, _draft())

        establishment = service.register_establishment(user_id="est-1", name="Sans Adresse")
        with pytest.raises(MissingAddress):
            service.create_mission(establishment.id, _draft())
        with pytest.raises(MissingAddress):
            service.quote_mission(establishment.id, date(2025, 3, 10))
        with pytest.raises(MissingEstablishmentProfile):
            service.quote_mission(999, date(2025, 3, 10))


@pytest.mark.parametrize("gateway", [FakeGateway(fail=True), FakeGateway(raise_error=True)])
def test_failed_payment_session_removes_pending_mission(gateway: FakeGateway) -> None:
    with SessionLocal() as db:
        service = _service(db, gateway)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, missions_used=1)

        with pytest.raises(PaymentSessionFailure) as excinfo:
            service.create_mission(establishment.id, _draft(start=date(2025, 3, 2)))

        assert gateway.sessions[-1]["is_urgent"] is True
        assert service.repo.get_mission(excinfo.value.mission_id) is None
        assert service.repo.list_missions(establishment_id=establishment.id) == []


def test_confirm_payment_opens_mission_once() -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, missions_used=1)
        pending = service.create_mission(establishment.id, _draft()).mission

        opened = service.confirm_mission_payment(pending.id)
        assert opened.status == "open"
        assert opened.payment_status == "paid"
        assert service.confirm_mission_payment(pending.id).status == "open"


def test_unverified_payment_keeps_mission_pending() -> None:
    with SessionLocal() as db:
        service = _service(db, FakeGateway(paid=False))
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, missions_used=1)
        pending = service.create_mission(establishment.id, _draft()).mission

        with pytest.raises(PaymentSessionFailure):
            service.confirm_mission_payment(pending.id)
        assert service.get_mission(pending.id).status == "pending"


def test_club_subscription_uses_included_mission_then_club_rate() -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, status="active", plan="club")

        included = service.create_mission(establishment.id, _draft())
        assert included.decision.rule == "club_included"
        assert service.get_establishment(establishment.id).subscription.missions_included_used

        extra = service.create_mission(establishment.id, _draft(start=date(2025, 3, 2)))
        assert extra.decision.rule == "club_extra"
        assert extra.mission.price == Decimal("4.90")


def test_booking_flow_fills_mission_and_notifies() -> None:
    notifier = RecordingNotifier()
    with SessionLocal() as db:
        service = _service(db, notifier=notifier)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        talent = service.register_talent(user_id="tal-1", first_name="Ana", position_types=["serveur"])
        mission = service.create_mission(establishment.id, _draft()).mission
        assert ("tal-1", "new_mission") in notifier.sent

        application = service.express_interest(mission.id, talent.id, match_score=92)
        assert ("est-1", "new_application") in notifier.sent
        with pytest.raises(DuplicateApplication):
            service.express_interest(mission.id, talent.id)

        service.accept_application(application.id)
        half = service.confirm_application(application.id, "talent")
        assert half.status == "accepted"
        assert service.confirm_application(application.id, "talent") == half

        booked = service.confirm_application(application.id, "establishment")
        assert booked.status == "confirmed"
        assert booked.confirmed_at is not None
        assert service.get_mission(mission.id).status == "filled"
        assert ("tal-1", "application_confirmed") in notifier.sent
        assert ("est-1", "application_confirmed") in notifier.sent

        other = service.register_talent(user_id="tal-2")
        with pytest.raises(IneligibleMission):
            service.express_interest(mission.id, other.id)

        assert service.complete_application(application.id).status == "completed"


def test_booked_dates_hide_overlapping_missions() -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, status="active")
        talent = service.register_talent(user_id="tal-1")

        booked = service.create_mission(establishment.id, _draft(start=date(2025, 3, 10), end_date=date(2025, 3, 12)))
        overlapping = service.create_mission(establishment.id, _draft(start=date(2025, 3, 11)))
        later = service.create_mission(establishment.id, _draft(start=date(2025, 3, 13)))

        application = service.express_interest(booked.mission.id, talent.id)
        service.accept_application(application.id)

        visible = {mission.id for mission in service.matched_missions_for_talent(talent.id)}
        assert visible == {later.mission.id}
        assert overlapping.mission.id not in visible


def test_withdraw_and_invalid_transitions() -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        talent = service.register_talent(user_id="tal-1")
        mission = service.create_mission(establishment.id, _draft()).mission

        application = service.express_interest(mission.id, talent.id)
        service.withdraw_application(application.id)
        assert service.repo.get_application(application.id) is None

        application = service.express_interest(mission.id, talent.id)
        service.reject_application(application.id)
        with pytest.raises(InvalidStateTransition):
            service.accept_application(application.id)
        with pytest.raises(InvalidStateTransition):
            service.withdraw_application(application.id)
        with pytest.raises(InvalidStateTransition):
            service.confirm_application(application.id, "talent")


def test_notification_failure_does_not_break_operation() -> None:
    with SessionLocal() as db:
        service = _service(db, notifier=RecordingNotifier(fail=True))
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        talent = service.register_talent(user_id="tal-1")
        mission = service.create_mission(establishment.id, _draft()).mission

        application = service.express_interest(mission.id, talent.id)
        assert service.accept_application(application.id).status == "accepted"


def test_relaunch_reopens_with_new_dates() -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        mission = service.create_mission(establishment.id, _draft()).mission
        service.close_mission(mission.id)

        relaunched = service.relaunch_mission(mission.id, date(2025, 3, 2))
        assert relaunched.status == "open"
        assert relaunched.start_date == date(2025, 3, 2)
        assert relaunched.is_urgent

        service.repo.update_subscription(establishment.id, missions_used=1)
        pending = service.create_mission(establishment.id, _draft()).mission
        with pytest.raises(InvalidStateTransition):
            service.relaunch_mission(pending.id, date(2025, 3, 20))


def test_cancelled_unpaid_mission_cannot_be_relaunched() -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, missions_used=1)
        pending = service.create_mission(establishment.id, _draft()).mission

        assert service.cancel_mission(pending.id).status == "cancelled"
        with pytest.raises(InvalidStateTransition):
            service.relaunch_mission(pending.id, date(2025, 3, 20))

        mission = service.get_mission(pending.id)
        assert mission.status == "cancelled"
        assert mission.payment_status == "pending"
        assert service.repo.transition_mission(
            pending.id,
            expected={"cancelled"},
            payment_expected={"not_required", "paid"},
            status="open",
        ) is False


def test_counter_spent_between_pricing_and_insert_is_repriced(monkeypatch) -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        price = service.pricing.price_mission_creation
        calls = []

        def _price_then_spend_quota(current, start_date):
            decision = price(current, start_date)
            if not calls:
                # Another creation takes the free slot after this one priced it.
                service.repo.update_subscription(establishment.id, missions_used=1)
            calls.append(decision.rule)
            return decision

        monkeypatch.setattr(service.pricing, "price_mission_creation", _price_then_spend_quota)

        result = service.create_mission(establishment.id, _draft())

        assert calls == ["freemium_quota", "standard_list"]
        assert result.decision.rule == "standard_list"
        assert result.mission.status == "pending"
        assert service.get_establishment(establishment.id).subscription.missions_used == 1
        assert len(service.repo.list_missions(establishment_id=establishment.id)) == 1


def test_counter_race_on_every_attempt_gives_up(monkeypatch) -> None:
    with SessionLocal() as db:
        service = _service(db)
        establishment = service.register_establishment(user_id="est-1", name="Chez Paul", address=ADDRESS)
        service.repo.update_subscription(establishment.id, missions_used=1)
        stale = PricingDecision(rule="freemium_quota", price=Decimal("0"), is_urgent=False, increments_missions_used=True)
        monkeypatch.setattr(service.pricing, "price_mission_creation", lambda current, start_date: stale)

        with pytest.raises(MarketplaceError, match="usage counters changed"):
            service.create_mission(establishment.id, _draft())

        assert service.repo.list_missions(establishment_id=establishment.id) == []
        assert service.get_establishment(establishment.id).subscription.missions_used == 1
