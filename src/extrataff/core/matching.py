"""Eligibility filters between talents and missions.

All functions are pure: callers load missions, talents and applications and
pass them in. Input order is preserved; sorting belongs to the presentation
layer.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from extrataff.types import Application, Mission, Talent

DateRange = tuple[date, date]


def ranges_overlap(first: DateRange, second: DateRange) -> bool:
    s1, e1 = first
    s2, e2 = second
    return s1 <= e2 and e1 >= s2


def matches_position(talent: Talent, mission: Mission) -> bool:
    if not talent.position_types:
        return True
    return mission.position in talent.position_types


def matches_department(talent: Talent, mission: Mission) -> bool:
    if not talent.preferred_departments:
        return True
    department = mission.effective_department
    return department is not None and department in talent.preferred_departments


def booked_ranges(missions: Iterable[Mission]) -> list[DateRange]:
    return [mission.date_range for mission in missions if mission.date_range is not None]


def overlaps_booking(mission: Mission, ranges: list[DateRange]) -> bool:
    candidate = mission.date_range
    if candidate is None:
        return False
    return any(ranges_overlap(candidate, booked) for booked in ranges)


def match_missions_for_talent(
    talent: Talent,
    open_missions: Iterable[Mission],
    talent_applications: Iterable[Application],
    booked_missions: Iterable[Mission],
) -> list[Mission]:
    applied = {application.mission_id for application in talent_applications}
    ranges = booked_ranges(booked_missions)

    return [
        mission
        for mission in open_missions
        if mission.id not in applied
        and matches_position(talent, mission)
        and matches_department(talent, mission)
        and not overlaps_booking(mission, ranges)
    ]


def match_talents_for_mission(
    mission: Mission,
    talents: Iterable[Talent],
    mission_applications: Iterable[Application] = (),
) -> list[Talent]:
    # No calendar check on this side: overlap only guards the talent's own listing.
    applied = {application.talent_id for application in mission_applications}
    return [
        talent
        for talent in talents
        if talent.id not in applied
        and matches_position(talent, mission)
        and matches_department(talent, mission)
    ]


def match_label(score: int | float | None) -> str:
    """Label an externally computed match score for notification copy."""
    if score is None:
        return ""
    if score >= 90:
        return "Excellent match"
    if score >= 75:
        return "Good match"
    if score >= 60:
        return "Fair match"
    return ""
