"""Lifecycle of a talent's application to a mission.

::

    interested -> accepted -> confirmed -> completed
        |             |
        +-> rejected  +-> cancelled

``accepted -> confirmed`` needs both the establishment and the talent to
confirm. Each side only sets its own flag; whichever confirmation arrives
second flips the status and stamps ``confirmed_at``. Transitions never mutate
their input: they return a new ``Application`` plus the events to emit.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from extrataff.core.errors import DuplicateApplication, IneligibleMission, InvalidStateTransition
from extrataff.types import Application, ConfirmingParty, DomainEvent, Mission

_CONFIRM_FLAGS: dict[str, tuple[str, str]] = {
    "establishment": ("establishment_confirmed", "talent_confirmed"),
    "talent": ("talent_confirmed", "establishment_confirmed"),
}


@dataclass(slots=True)
class Transition:
    application: Application | None
    events: list[DomainEvent] = field(default_factory=list)
    changed: bool = True


def _evolve(application: Application, **changes: Any) -> Application:
    # model_copy skips validation; rebuild so the invariants are rechecked.
    return Application.model_validate({**application.model_dump(), **changes})


def _event(kind: str, application: Application, **extra: Any) -> DomainEvent:
    return DomainEvent(
        kind=kind,
        mission_id=application.mission_id,
        application_id=application.id,
        talent_id=application.talent_id,
        **extra,
    )


def _require(application: Application, allowed: set[str], action: str) -> None:
    if application.status not in allowed:
        raise InvalidStateTransition("application", application.id, application.status, action)


class ApplicationStateMachine:
    def create(
        self,
        mission: Mission,
        talent_id: int,
        existing: Iterable[Application] = (),
        *,
        match_score: int | None = None,
    ) -> Transition:
        if mission.status != "open":
            raise IneligibleMission(mission.id, mission.status)
        if any(app.mission_id == mission.id and app.talent_id == talent_id for app in existing):
            raise DuplicateApplication(mission.id, talent_id)

        application = Application(mission_id=mission.id, talent_id=talent_id)
        return Transition(application, [_event("new_application", application, match_score=match_score)])

    def accept(self, application: Application) -> Transition:
        _require(application, {"interested"}, "accept")
        updated = _evolve(application, status="accepted")
        return Transition(updated, [_event("application_accepted", updated)])

    def reject(self, application: Application) -> Transition:
        _require(application, {"interested"}, "reject")
        updated = _evolve(application, status="rejected")
        return Transition(updated, [_event("application_rejected", updated)])

    def confirm(self, application: Application, party: ConfirmingParty, now: datetime) -> Transition:
        own_flag, other_flag = _CONFIRM_FLAGS[party]

        if getattr(application, own_flag) and application.status in {"accepted", "confirmed"}:
            return Transition(application, changed=False)
        _require(application, {"accepted"}, f"confirm as {party}")

        changes: dict[str, Any] = {own_flag: True}
        if getattr(application, other_flag):
            changes.update(status="confirmed", confirmed_at=now)

        updated = _evolve(application, **changes)
        events = [self.confirmed_event(updated)] if updated.status == "confirmed" else []
        return Transition(updated, events)

    def confirmed_event(self, application: Application) -> DomainEvent:
        return _event("application_confirmed", application)

    def withdraw(self, application: Application) -> Transition:
        _require(application, {"interested"}, "withdraw")
        return Transition(None)

    def cancel(self, application: Application) -> Transition:
        _require(application, {"accepted"}, "cancel")
        updated = _evolve(application, status="cancelled")
        return Transition(updated, [_event("application_cancelled", updated)])

    def complete(self, application: Application) -> Transition:
        _require(application, {"confirmed"}, "complete")
        return Transition(_evolve(application, status="completed"))
