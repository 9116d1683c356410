"""Turns domain events into user notifications.

Engines return ``DomainEvent`` lists instead of notifying inline; the service
hands them to ``NotificationDispatcher``. Delivery is best effort: a failure is
logged and never reaches the caller of the business operation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from extrataff.core.catalog import position_label
from extrataff.core.matching import match_label, match_talents_for_mission
from extrataff.db.repositories import Repository, to_application, to_talent
from extrataff.types import DomainEvent, NotificationMessage

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, user_id: str, type: str, title: str, content: str, link: str | None = None) -> None: ...


class RepositoryNotifier:
    """Stores notifications in the ``notifications`` table."""

    def __init__(self, repo: Repository):
        self.repo = repo

    def notify(self, user_id: str, type: str, title: str, content: str, link: str | None = None) -> None:
        try:
            self.repo.create_notification(user_id=user_id, type=type, title=title, content=content, link=link)
        except SQLAlchemyError:
            # Leave the shared session usable for the business operation.
            self.repo.session.rollback()
            raise


class NotificationDispatcher:
    def __init__(self, repo: Repository, notifier: Notifier, *, fan_out_new_missions: bool = True):
        self.repo = repo
        self.notifier = notifier
        self.fan_out_new_missions = fan_out_new_missions

    def dispatch(self, events: Iterable[DomainEvent]) -> int:
        delivered = 0
        for event in events:
            try:
                messages = self.render(event)
            except Exception:
                logger.exception("Could not render %s event for mission_id=%s", event.kind, event.mission_id)
                continue

            for message in messages:
                if not message.user_id:
                    continue
                try:
                    self.notifier.notify(
                        message.user_id,
                        message.type,
                        message.title,
                        message.content,
                        message.link,
                    )
                except Exception:
                    logger.exception("Notification %s to user %s failed", message.type, message.user_id)
                    continue
                delivered += 1
        return delivered

    def render(self, event: DomainEvent) -> list[NotificationMessage]:
        mission = self.repo.get_mission(event.mission_id)
        if mission is None:
            logger.warning("Dropping %s event: mission %s is gone", event.kind, event.mission_id)
            return []
        establishment = self.repo.get_establishment(mission.establishment_id)
        establishment_name = establishment.name if establishment else ""
        label = position_label(mission.position)

        if event.kind == "new_mission":
            if not self.fan_out_new_missions:
                return []
            mission_model = self.repo.mission_model(mission)
            talents = [to_talent(row) for row in self.repo.list_talents()]
            applications = [to_application(row) for row in self.repo.list_applications(mission_id=mission.id)]
            return [
                NotificationMessage(
                    user_id=talent.user_id,
                    type="new_mission",
                    title="New mission available",
                    content=f'A "{label}" mission matches your profile - {establishment_name}',
                    link="/talent/missions",
                )
                for talent in match_talents_for_mission(mission_model, talents, applications)
                if talent.user_id
            ]

        talent = self.repo.get_talent(event.talent_id) if event.talent_id is not None else None
        talent_user = talent.user_id if talent else ""
        establishment_user = establishment.user_id if establishment else ""

        if event.kind == "new_application":
            quality = match_label(event.match_score)
            content = f"{talent.first_name if talent else 'A talent'} applied for your {label} mission."
            if quality:
                content = f"{content} {quality} ({event.match_score}%)"
            return [
                NotificationMessage(
                    user_id=establishment_user,
                    type="new_application",
                    title="New application",
                    content=content,
                    link=f"/establishment/applications/{mission.id}",
                )
            ]

        if event.kind == "application_accepted":
            return [
                NotificationMessage(
                    user_id=talent_user,
                    type="application_accepted",
                    title="Application accepted",
                    content=f"{establishment_name} accepted your application for the {label} position.",
                    link="/talent/applications",
                )
            ]

        if event.kind == "application_rejected":
            return [
                NotificationMessage(
                    user_id=talent_user,
                    type="application_rejected",
                    title="Application not selected",
                    content=f"{establishment_name} did not select your application for the {label} position.",
                    link="/talent/applications",
                )
            ]

        if event.kind == "application_confirmed":
            return [
                NotificationMessage(
                    user_id=talent_user,
                    type="application_confirmed",
                    title="Mission confirmed",
                    content=f"Your {label} mission at {establishment_name} is confirmed.",
                    link="/talent/confirmed",
                ),
                NotificationMessage(
                    user_id=establishment_user,
                    type="application_confirmed",
                    title="Mission confirmed",
                    content=f"Your {label} mission is booked.",
                    link=f"/establishment/applications/{mission.id}",
                ),
            ]

        if event.kind == "application_cancelled":
            return [
                NotificationMessage(
                    user_id=user_id,
                    type="application_cancelled",
                    title="Mission cancelled",
                    content=f"The {label} booking at {establishment_name} was cancelled.",
                    link=None,
                )
                for user_id in (talent_user, establishment_user)
            ]

        raise ValueError(f"unsupported event kind '{event.kind}'")
