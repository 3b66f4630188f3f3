"""
availability_resolver.py
------------------------
Finds the effective open window for one staff member on one local calendar date.

Lookup order:
1) A date-specific override for that exact date wins outright, even when it
   marks the day closed (is_available=False). Weekly rules are not consulted.
2) Otherwise the first open weekly rule whose weekday set contains the date's
   weekday.

Location matching: a rule applies when its location equals the requested one
or when it has no location. When no location is requested only location-less
rules apply. Location-specific records are preferred over location-less ones.

Works on any objects exposing the model attribute names (staff_id, location_id,
date / weekdays, start_time, end_time, is_available), so it runs equally on
ORM rows and plain test doubles.
"""

from dataclasses import dataclass
from datetime import date

from .time_arithmetic import parse_clock_time, weekday_of


@dataclass(frozen=True)
class AvailabilityWindow:
    start_minutes: int
    end_minutes: int
    source: str = "weekly"  # "weekly" or "override"

    @property
    def length(self) -> int:
        return max(0, self.end_minutes - self.start_minutes)


def _location_matches(record, location_id) -> bool:
    rec_loc = getattr(record, "location_id", None)
    if rec_loc is None:
        return True
    return location_id is not None and str(rec_loc) == str(location_id)


def _prefer_specific(records):
    # Location-specific first; stable otherwise so callers control tie order.
    return sorted(records, key=lambda r: getattr(r, "location_id", None) is None)


def _same_staff(record, staff_id) -> bool:
    return str(record.staff_id) == str(staff_id)


def find_override(staff_id, location_id, target_date: date, overrides):
    matches = [
        o for o in overrides
        if _same_staff(o, staff_id)
        and _location_matches(o, location_id)
        and o.date == target_date
    ]
    if not matches:
        return None
    return _prefer_specific(matches)[0]


def find_weekly_rule(staff_id, location_id, target_date: date, weekly_rules):
    day_name = weekday_of(target_date)
    matches = [
        r for r in weekly_rules
        if _same_staff(r, staff_id)
        and _location_matches(r, location_id)
        and r.is_available
        and day_name in [d.lower() for d in (r.weekdays or [])]
    ]
    if not matches:
        return None
    return _prefer_specific(matches)[0]


def resolve_window(staff_id, location_id, target_date: date, weekly_rules, overrides):
    """
    Return an AvailabilityWindow, or None when the staff member is unavailable.

    Raises InvalidTimeFormat when the winning record holds a malformed time.
    """
    override = find_override(staff_id, location_id, target_date, overrides)
    if override is not None:
        if not override.is_available:
            return None
        return AvailabilityWindow(
            parse_clock_time(override.start_time),
            parse_clock_time(override.end_time),
            source="override",
        )

    rule = find_weekly_rule(staff_id, location_id, target_date, weekly_rules)
    if rule is None:
        return None
    return AvailabilityWindow(
        parse_clock_time(rule.start_time),
        parse_clock_time(rule.end_time),
        source="weekly",
    )
