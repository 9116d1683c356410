from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from extrataff.config import Settings
from extrataff.types import Mission, MissionDraft, PricingDecision, SubscriptionState


def test_mission_draft_validates_dates_and_position() -> None:
    with pytest.raises(ValidationError):
        MissionDraft(position="serveur", start_date=date(2025, 3, 10), end_date=date(2025, 3, 9))
    with pytest.raises(ValidationError):
        MissionDraft(position="  ", start_date=date(2025, 3, 10))

    draft = MissionDraft(position=" barman ", start_date=date(2025, 3, 10))
    assert draft.position == "barman"


def test_mission_date_range_defaults_end_to_start() -> None:
    mission = Mission(id=1, establishment_id=1, position="chef", start_date=date(2025, 3, 10))
    assert mission.date_range == (date(2025, 3, 10), date(2025, 3, 10))
    assert Mission(id=2, establishment_id=1, position="chef").date_range is None


def test_mission_effective_department_falls_back_to_establishment() -> None:
    mission = Mission(id=1, establishment_id=1, position="chef", establishment_department="33")
    assert mission.effective_department == "33"


def test_subscription_is_club_only_when_active() -> None:
    assert SubscriptionState(status="active", plan="club").is_club
    assert not SubscriptionState(status="expired", plan="club").is_club


def test_pricing_decision_flags() -> None:
    decision = PricingDecision(rule="club_extra", price=Decimal("4.90"), is_urgent=False)
    assert decision.requires_payment
    assert not decision.is_free


def test_settings_validation(monkeypatch) -> None:
    monkeypatch.setenv("FREEMIUM_MISSION_QUOTA", "-1")
    with pytest.raises(ValidationError):
        Settings()

    monkeypatch.setenv("FREEMIUM_MISSION_QUOTA", "3")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    settings = Settings()
    assert settings.freemium_mission_quota == 3
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize(
    "env",
    [
        {"CLUB_MISSION_PRICE": "12.00"},
        {"URGENT_MISSION_PRICE": "5.00"},
        {"CLUB_MISSION_PRICE": "0"},
    ],
)
def test_settings_reject_inverted_price_table(monkeypatch, env: dict[str, str]) -> None:
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    with pytest.raises(ValidationError):
        Settings()
