"""Mission-creation pricing.

Money is ``Decimal`` throughout. Rules are evaluated top to bottom and the
first match wins:

1. Club subscriber, bundled mission unused: free, consumes the bundled mission.
2. Club subscriber, bundled mission used: discounted club rate, urgent or not.
3. Other active subscription: free, no counter change.
4. Not subscribed, freemium quota left: free, consumes one quota slot.
5. Not subscribed, quota spent, urgent: urgent list price.
6. Not subscribed, quota spent: standard list price.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from extrataff.config import Settings, get_settings
from extrataff.core.clock import Clock, SystemClock
from extrataff.core.errors import MissingEstablishmentProfile
from extrataff.types import Establishment, PricingDecision

logger = logging.getLogger(__name__)

FREE = Decimal("0")


def is_urgent(start_date: date, today: date) -> bool:
    """A mission starting today or tomorrow (or earlier) is urgent."""
    return start_date <= today + timedelta(days=1)


@dataclass(slots=True)
class PriceList:
    standard: Decimal
    urgent: Decimal
    club: Decimal
    freemium_quota: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "PriceList":
        return cls(
            standard=settings.standard_mission_price,
            urgent=settings.urgent_mission_price,
            club=settings.club_mission_price,
            freemium_quota=settings.freemium_mission_quota,
        )


class MissionPricingEngine:
    def __init__(self, prices: PriceList | None = None, clock: Clock | None = None):
        self.prices = prices or PriceList.from_settings(get_settings())
        self.clock = clock or SystemClock(get_settings().timezone)

    def price_mission_creation(
        self,
        establishment: Establishment | None,
        proposed_start_date: date,
    ) -> PricingDecision:
        if establishment is None:
            raise MissingEstablishmentProfile()

        urgent = is_urgent(proposed_start_date, self.clock.today())
        decision = self._decide(establishment, urgent)
        logger.debug(
            "Priced mission for establishment_id=%s rule=%s price=%s urgent=%s",
            establishment.id,
            decision.rule,
            decision.price,
            urgent,
        )
        return decision

    def _decide(self, establishment: Establishment, urgent: bool) -> PricingDecision:
        subscription = establishment.subscription

        if subscription.is_club:
            if not subscription.missions_included_used:
                return PricingDecision(
                    rule="club_included",
                    price=FREE,
                    is_urgent=urgent,
                    consumes_included_mission=True,
                )
            return PricingDecision(rule="club_extra", price=self.prices.club, is_urgent=urgent)

        if subscription.status == "active":
            return PricingDecision(rule="subscription", price=FREE, is_urgent=urgent)

        if subscription.missions_used < self.prices.freemium_quota:
            return PricingDecision(
                rule="freemium_quota",
                price=FREE,
                is_urgent=urgent,
                increments_missions_used=True,
            )

        if urgent:
            return PricingDecision(rule="urgent_list", price=self.prices.urgent, is_urgent=True)
        return PricingDecision(rule="standard_list", price=self.prices.standard, is_urgent=False)
