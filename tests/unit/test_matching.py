from datetime import date

from extrataff.core.matching import (
    match_label,
    match_missions_for_talent,
    match_talents_for_mission,
    ranges_overlap,
)
from extrataff.types import Application, Mission, Talent


def _mission(mission_id: int, start: date | None = date(2025, 3, 20), end: date | None = None, **kwargs) -> Mission:
    values = {"position": "serveur", "department": "75", "start_date": start, "end_date": end}
    values.update(kwargs)
    return Mission(id=mission_id, establishment_id=1, **values)


def test_ranges_overlap_is_inclusive() -> None:
    assert ranges_overlap((date(2025, 3, 10), date(2025, 3, 12)), (date(2025, 3, 12), date(2025, 3, 14)))
    assert not ranges_overlap((date(2025, 3, 10), date(2025, 3, 12)), (date(2025, 3, 13), date(2025, 3, 14)))


def test_talent_sees_missions_matching_position_and_department() -> None:
    talent = Talent(id=1, position_types=frozenset({"serveur"}), preferred_departments=frozenset({"75"}))
    missions = [
        _mission(1),
        _mission(2, position="barman"),
        _mission(3, department="69"),
        _mission(4, department=None, establishment_department="75"),
    ]

    result = match_missions_for_talent(talent, missions, [], [])

    assert [mission.id for mission in result] == [1, 4]


def test_empty_preferences_match_everything() -> None:
    talent = Talent(id=1)
    missions = [_mission(1, position="barman", department="13"), _mission(2, department=None)]

    assert [mission.id for mission in match_missions_for_talent(talent, missions, [], [])] == [1, 2]


def test_department_filter_excludes_missions_without_any_department() -> None:
    talent = Talent(id=1, preferred_departments=frozenset({"75"}))
    missions = [_mission(1, department=None)]

    assert match_missions_for_talent(talent, missions, [], []) == []


def test_missions_already_applied_to_are_hidden() -> None:
    talent = Talent(id=7)
    applications = [Application(id=1, mission_id=2, talent_id=7, status="rejected")]

    result = match_missions_for_talent(talent, [_mission(1), _mission(2)], applications, [])

    assert [mission.id for mission in result] == [1]


def test_missions_overlapping_a_booking_are_hidden() -> None:
    talent = Talent(id=7)
    booked = [_mission(99, start=date(2025, 3, 10), end=date(2025, 3, 12), status="filled")]
    missions = [
        _mission(1, start=date(2025, 3, 11)),
        _mission(2, start=date(2025, 3, 12), end=date(2025, 3, 15)),
        _mission(3, start=date(2025, 3, 13)),
        _mission(4, start=date(2025, 3, 1), end=date(2025, 3, 9)),
    ]

    result = match_missions_for_talent(talent, missions, [], booked)

    assert [mission.id for mission in result] == [3, 4]


def test_undated_missions_never_conflict() -> None:
    talent = Talent(id=7)
    booked = [_mission(99, start=date(2025, 3, 10), end=date(2025, 3, 12)), _mission(98, start=None)]

    result = match_missions_for_talent(talent, [_mission(1, start=None)], [], booked)

    assert [mission.id for mission in result] == [1]


def test_talents_for_mission_skip_applicants_but_ignore_calendar() -> None:
    mission = _mission(5)
    talents = [
        Talent(id=1, position_types=frozenset({"serveur"})),
        Talent(id=2, position_types=frozenset({"chef"})),
        Talent(id=3, preferred_departments=frozenset({"69"})),
        Talent(id=4),
    ]
    applications = [Application(id=10, mission_id=5, talent_id=4)]

    result = match_talents_for_mission(mission, talents, applications)

    assert [talent.id for talent in result] == [1]


def test_match_label_thresholds() -> None:
    assert match_label(None) == ""
    assert match_label(95) == "Excellent match"
    assert match_label(90) == "Excellent match"
    assert match_label(80) == "Good match"
    assert match_label(74) == "Fair match"
    assert match_label(60) == "Fair match"
    assert match_label(59) == ""
