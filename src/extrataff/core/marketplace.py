from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from extrataff.config import Settings, get_settings
from extrataff.core.applications import ApplicationStateMachine
from extrataff.core.clock import Clock, SystemClock
from extrataff.core.errors import (
    InvalidStateTransition,
    MarketplaceError,
    MissingAddress,
    MissingEstablishmentProfile,
    NotFound,
    PaymentSessionFailure,
)
from extrataff.core.events import NotificationDispatcher, Notifier, RepositoryNotifier
from extrataff.core.geo import extract_department, fuzzy_location
from extrataff.core.matching import match_missions_for_talent, match_talents_for_mission
from extrataff.core.payments import CheckoutGateway, PaymentGateway
from extrataff.core.pricing import MissionPricingEngine, PriceList, is_urgent
from extrataff.db.repositories import (
    Repository,
    to_application,
    to_establishment,
    to_talent,
)
from extrataff.types import (
    BOOKED_APPLICATION_STATUSES,
    Application,
    ConfirmingParty,
    DomainEvent,
    Establishment,
    Mission,
    MissionCreationResult,
    MissionDraft,
    PricingDecision,
    Talent,
)

logger = logging.getLogger(__name__)

# A concurrent creation can spend the counter between pricing and insert;
# the second pass prices against the fresh counters.
_PRICING_ATTEMPTS = 2

RELAUNCHABLE_STATUSES = {"open", "filled", "closed", "cancelled"}
RELAUNCHABLE_PAYMENT_STATUSES = {"not_required", "paid"}


class MarketplaceService:
    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        clock: Clock | None = None,
        payments: PaymentGateway | None = None,
        notifier: Notifier | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.clock = clock or SystemClock(self.settings.timezone)
        self.pricing = MissionPricingEngine(PriceList.from_settings(self.settings), self.clock)
        self.applications = ApplicationStateMachine()
        self.payments = payments or CheckoutGateway(self.settings)
        self.dispatcher = NotificationDispatcher(
            self.repo,
            notifier or RepositoryNotifier(self.repo),
            fan_out_new_missions=self.settings.notify_on_new_mission,
        )

    # Registration

    def register_establishment(
        self,
        *,
        user_id: str,
        name: str,
        address: str | None = None,
        establishment_type: str = "autre",
    ) -> Establishment:
        row = self.repo.create_establishment(
            user_id=user_id,
            name=name,
            address=address,
            department=extract_department(address),
            establishment_type=establishment_type,
        )
        return to_establishment(row)

    def register_talent(self, *, user_id: str, **profile) -> Talent:
        return to_talent(self.repo.create_talent(user_id=user_id, **profile))

    # Lookups

    def get_establishment(self, establishment_id: int) -> Establishment:
        row = self.repo.get_establishment(establishment_id)
        if row is None:
            raise NotFound("establishment", establishment_id)
        return to_establishment(row)

    def get_talent(self, talent_id: int) -> Talent:
        row = self.repo.get_talent(talent_id)
        if row is None:
            raise NotFound("talent", talent_id)
        return to_talent(row)

    def get_mission(self, mission_id: int) -> Mission:
        row = self.repo.get_mission(mission_id)
        if row is None:
            raise NotFound("mission", mission_id)
        return self.repo.mission_model(row)

    def get_application(self, application_id: int) -> Application:
        row = self.repo.get_application(application_id)
        if row is None:
            raise NotFound("application", application_id)
        return to_application(row)

    # Matching

    def matched_missions_for_talent(self, talent_id: int) -> list[Mission]:
        talent = self.get_talent(talent_id)
        open_missions = self.repo.mission_models(self.repo.list_missions(status="open"))
        applications = [to_application(row) for row in self.repo.list_applications(talent_id=talent_id)]
        booked_ids = [app.mission_id for app in applications if app.status in BOOKED_APPLICATION_STATUSES]
        booked = self.repo.mission_models(self.repo.list_missions(mission_ids=booked_ids)) if booked_ids else []
        return match_missions_for_talent(talent, open_missions, applications, booked)

    def matched_talents_for_mission(self, mission_id: int) -> list[Talent]:
        mission = self.get_mission(mission_id)
        talents = [to_talent(row) for row in self.repo.list_talents()]
        applications = [to_application(row) for row in self.repo.list_applications(mission_id=mission_id)]
        return match_talents_for_mission(mission, talents, applications)

    # Mission creation and pricing

    def quote_mission(self, establishment_id: int, start_date: date) -> PricingDecision:
        row = self.repo.get_establishment(establishment_id)
        if row is None:
            raise MissingEstablishmentProfile(establishment_id)
        if not row.address:
            raise MissingAddress(establishment_id)
        return self.pricing.price_mission_creation(to_establishment(row), start_date)

    def create_mission(self, establishment_id: int, draft: MissionDraft, *, comment: str = "") -> MissionCreationResult:
        row = self.repo.get_establishment(establishment_id)
        if row is None:
            raise MissingEstablishmentProfile(establishment_id)
        if not row.address:
            raise MissingAddress(establishment_id)

        establishment = to_establishment(row)
        for _ in range(_PRICING_ATTEMPTS):
            decision = self.pricing.price_mission_creation(establishment, draft.start_date)
            if decision.requires_payment:
                return self._create_paid_mission(establishment, draft, decision, comment)

            consume = None
            if decision.consumes_included_mission:
                consume = "included"
            elif decision.increments_missions_used:
                consume = "quota"

            mission_row = self.repo.create_mission(
                **self._mission_values(establishment, draft, decision, comment),
                status="open",
                payment_status="not_required",
                consume=consume,
                freemium_quota=self.pricing.prices.freemium_quota,
            )
            if mission_row is not None:
                break
            logger.info("Usage counters moved for establishment_id=%s, repricing", establishment_id)
            establishment = self.get_establishment(establishment_id)
        else:
            raise MarketplaceError("usage counters changed during mission creation, please retry")

        logger.info(
            "Created free mission_id=%s establishment_id=%s rule=%s",
            mission_row.id,
            establishment_id,
            decision.rule,
        )
        self.dispatcher.dispatch([DomainEvent(kind="new_mission", mission_id=mission_row.id)])
        return MissionCreationResult(mission=self.repo.mission_model(mission_row), decision=decision)

    def _mission_values(
        self,
        establishment: Establishment,
        draft: MissionDraft,
        decision: PricingDecision,
        comment: str,
    ) -> dict:
        return {
            "establishment_id": establishment.id,
            "position": draft.position,
            "start_date": draft.start_date,
            "end_date": draft.end_date,
            "is_urgent": decision.is_urgent,
            "price": decision.price,
            "department": draft.department or establishment.department or extract_department(establishment.address),
            "location_fuzzy": fuzzy_location(establishment.address),
            "location_exact": establishment.address or "",
            "hourly_rate": draft.hourly_rate,
            "comment": comment,
        }

    def _create_paid_mission(
        self,
        establishment: Establishment,
        draft: MissionDraft,
        decision: PricingDecision,
        comment: str,
    ) -> MissionCreationResult:
        mission_row = self.repo.create_mission(
            **self._mission_values(establishment, draft, decision, comment),
            status="pending",
            payment_status="pending",
        )
        try:
            session = self.payments.create_payment_session(
                establishment_id=establishment.id,
                mission_type=decision.mission_type,
                mission_id=mission_row.id,
                is_urgent=decision.is_urgent,
            )
        except Exception as exc:
            self._discard_pending_mission(mission_row.id, str(exc))
            raise PaymentSessionFailure(str(exc) or "payment session failed", mission_id=mission_row.id) from exc

        if not session.ok:
            message = session.error or "payment session returned no checkout url"
            self._discard_pending_mission(mission_row.id, message)
            raise PaymentSessionFailure(message, mission_id=mission_row.id)

        mission_row = self.repo.update_mission(mission_row.id, payment_session_id=session.session_id)
        logger.info(
            "Created pending mission_id=%s establishment_id=%s rule=%s price=%s",
            mission_row.id,
            establishment.id,
            decision.rule,
            decision.price,
        )
        return MissionCreationResult(
            mission=self.repo.mission_model(mission_row),
            decision=decision,
            checkout_url=session.url,
        )

    def _discard_pending_mission(self, mission_id: int, reason: str) -> None:
        logger.warning("Deleting pending mission_id=%s after payment failure: %s", mission_id, reason)
        self.repo.delete_mission(mission_id)

    def confirm_mission_payment(self, mission_id: int, session_id: str | None = None) -> Mission:
        row = self.repo.get_mission(mission_id)
        if row is None:
            raise NotFound("mission", mission_id)
        if row.payment_status == "paid":
            return self.repo.mission_model(row)
        if row.status != "pending":
            raise InvalidStateTransition("mission", mission_id, row.status, "confirm payment for")

        if not self.payments.verify_payment(session_id or row.payment_session_id):
            raise PaymentSessionFailure("payment not completed", mission_id=mission_id)

        if not self.repo.transition_mission(mission_id, expected=["pending"], status="open", payment_status="paid"):
            current = self.get_mission(mission_id)
            if current.payment_status == "paid":
                return current
            raise InvalidStateTransition("mission", mission_id, current.status, "confirm payment for")

        logger.info("Payment confirmed for mission_id=%s", mission_id)
        self.dispatcher.dispatch([DomainEvent(kind="new_mission", mission_id=mission_id)])
        return self.get_mission(mission_id)

    # Mission lifecycle

    def relaunch_mission(self, mission_id: int, start_date: date, end_date: date | None = None) -> Mission:
        mission = self.get_mission(mission_id)
        if mission.status not in RELAUNCHABLE_STATUSES:
            raise InvalidStateTransition("mission", mission_id, mission.status, "relaunch")
        # Only the payment callback may open a mission whose price is still owed.
        if mission.payment_status not in RELAUNCHABLE_PAYMENT_STATUSES:
            raise InvalidStateTransition("mission", mission_id, mission.status, "relaunch unpaid")

        draft = MissionDraft(position=mission.position, start_date=start_date, end_date=end_date)
        if not self.repo.transition_mission(
            mission_id,
            expected=RELAUNCHABLE_STATUSES,
            payment_expected=RELAUNCHABLE_PAYMENT_STATUSES,
            start_date=draft.start_date,
            end_date=draft.end_date,
            is_urgent=is_urgent(draft.start_date, self.clock.today()),
            status="open",
        ):
            raise InvalidStateTransition("mission", mission_id, self.get_mission(mission_id).status, "relaunch")

        self.dispatcher.dispatch([DomainEvent(kind="new_mission", mission_id=mission_id)])
        return self.get_mission(mission_id)

    def close_mission(self, mission_id: int) -> Mission:
        return self._move_mission(mission_id, expected={"open", "filled"}, status="closed", action="close")

    def cancel_mission(self, mission_id: int) -> Mission:
        return self._move_mission(mission_id, expected={"open", "pending"}, status="cancelled", action="cancel")

    def _move_mission(self, mission_id: int, *, expected: set[str], status: str, action: str) -> Mission:
        mission = self.get_mission(mission_id)
        if not self.repo.transition_mission(mission_id, expected=expected, status=status):
            raise InvalidStateTransition("mission", mission_id, mission.status, action)
        return self.get_mission(mission_id)

    # Applications

    def express_interest(self, mission_id: int, talent_id: int, *, match_score: int | None = None) -> Application:
        mission = self.get_mission(mission_id)
        self.get_talent(talent_id)
        existing = [to_application(row) for row in self.repo.list_applications(mission_id=mission_id, talent_id=talent_id)]

        transition = self.applications.create(mission, talent_id, existing, match_score=match_score)
        application = to_application(self.repo.create_application(mission_id=mission_id, talent_id=talent_id))
        self.dispatcher.dispatch(
            event.model_copy(update={"application_id": application.id}) for event in transition.events
        )
        return application

    def accept_application(self, application_id: int) -> Application:
        before = self.get_application(application_id)
        transition = self.applications.accept(before)
        return self._persist_status(before, transition.application, transition.events, "accept")

    def reject_application(self, application_id: int) -> Application:
        before = self.get_application(application_id)
        transition = self.applications.reject(before)
        return self._persist_status(before, transition.application, transition.events, "reject")

    def cancel_application(self, application_id: int) -> Application:
        before = self.get_application(application_id)
        transition = self.applications.cancel(before)
        return self._persist_status(before, transition.application, transition.events, "cancel")

    def complete_application(self, application_id: int) -> Application:
        before = self.get_application(application_id)
        transition = self.applications.complete(before)
        return self._persist_status(before, transition.application, transition.events, "complete")

    def _persist_status(
        self,
        before: Application,
        after: Application | None,
        events: list[DomainEvent],
        action: str,
    ) -> Application:
        if after is None or before.id is None:
            raise ValueError(f"cannot persist {action} without a stored application")
        row = self.repo.set_application_status(before.id, expected=before.status, status=after.status)
        if row is None:
            current = self.get_application(before.id)
            raise InvalidStateTransition("application", before.id, current.status, action)
        self.dispatcher.dispatch(events)
        return to_application(row)

    def confirm_application(self, application_id: int, party: ConfirmingParty) -> Application:
        before = self.get_application(application_id)
        now = self.clock.now()
        transition = self.applications.confirm(before, party, now)
        if not transition.changed:
            return before

        row = self.repo.confirm_application(application_id, party, now)
        if row is None:
            current = self.get_application(application_id)
            if current.status == "confirmed" and getattr(current, f"{party}_confirmed"):
                return current
            raise InvalidStateTransition("application", application_id, current.status, f"confirm as {party}")

        after = to_application(row)
        if after.status == "confirmed":
            self.repo.transition_mission(after.mission_id, expected=["open"], status="filled")
            logger.info("Application %s confirmed by both parties", application_id)
            self.dispatcher.dispatch([self.applications.confirmed_event(after)])
        return after

    def withdraw_application(self, application_id: int) -> None:
        application = self.get_application(application_id)
        self.applications.withdraw(application)
        if not self.repo.delete_application(application_id, expected="interested"):
            current = self.get_application(application_id)
            raise InvalidStateTransition("application", application_id, current.status, "withdraw")
