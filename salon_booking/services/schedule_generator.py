"""
Expansion of working-hours templates into bookable slot candidates.

The generator is pure: it only decides which (date, time) pairs should exist.
Persisting them is the slot service's job.
"""
from typing import Iterable, List, Optional, Set
from datetime import date, timedelta
from salon_booking.core.config import settings
from salon_booking.core.errors import InvalidScheduleConfig
from salon_booking.schemas.slot import SlotCandidate
from salon_booking.services.vacation import VacationLike, is_day_in_vacation

MINUTES_PER_DAY = 24 * 60

def parse_time(value: str) -> int:
    """
    Convert an "HH:MM" string to minutes since midnight

    Raises:
        InvalidScheduleConfig: If the value is not a valid 24h time
    """
    try:
        hours, minutes = value.split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise InvalidScheduleConfig(f"Invalid time: {value!r}")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise InvalidScheduleConfig(f"Invalid time: {value!r}")
    return hours * 60 + minutes

def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"

def slot_key(slot_date: str, slot_time: str) -> str:
    """Key identifying a slot within one specialist's schedule."""
    return f"{slot_date}T{slot_time}"

def js_weekday(day: date) -> int:
    # 0 = Sunday ... 6 = Saturday, as the web and bot clients number days
    return (day.weekday() + 1) % 7

def generate_slots(
    specialist_id: str,
    date_from: date,
    date_to: date,
    start_time: str,
    end_time: str,
    step_minutes: int,
    weekdays: Iterable[int],
    existing_slot_keys: Optional[Set[str]] = None,
    vacation: VacationLike = None,
) -> List[SlotCandidate]:
    """
    Expand a working-hours template into slot candidates for one specialist.

    Args:
        specialist_id: Specialist the slots are generated for
        date_from: First day of the range (inclusive)
        date_to: Last day of the range (inclusive)
        start_time: Opening time, "HH:MM"
        end_time: Closing time, "HH:MM" (exclusive)
        step_minutes: Distance between consecutive slots
        weekdays: Enabled weekdays, 0 = Sunday ... 6 = Saturday
        existing_slot_keys: slot_key() values that already exist for the specialist
        vacation: The specialist's vacation period, whose days are skipped

    Returns:
        Ordered list of (date, time) candidates not yet present

    Raises:
        InvalidScheduleConfig: If the template is malformed
    """
    if not specialist_id:
        raise InvalidScheduleConfig("Specialist is required")
    if date_from > date_to:
        raise InvalidScheduleConfig("Start date must not be after end date")

    start = parse_time(start_time)
    end = parse_time(end_time)
    if start >= end:
        raise InvalidScheduleConfig("Start time must be before end time")

    if step_minutes is None or step_minutes <= 0:
        raise InvalidScheduleConfig("Step must be a positive number of minutes")
    if step_minutes < settings.MIN_SLOT_STEP_MINUTES:
        raise InvalidScheduleConfig(
            f"Step must be at least {settings.MIN_SLOT_STEP_MINUTES} minutes"
        )

    enabled = set(weekdays or [])
    if not enabled:
        raise InvalidScheduleConfig("At least one weekday must be enabled")
    if not enabled <= set(range(7)):
        raise InvalidScheduleConfig("Weekdays must be between 0 (Sunday) and 6 (Saturday)")

    seen = set(existing_slot_keys or ())
    candidates = []

    day = date_from
    while day <= date_to:
        iso_day = day.isoformat()
        if js_weekday(day) in enabled and not is_day_in_vacation(vacation, iso_day):
            for minute in range(start, end, step_minutes):
                slot_time = format_time(minute)
                key = slot_key(iso_day, slot_time)
                if key in seen:
                    continue
                seen.add(key)
                candidates.append(SlotCandidate(date=iso_day, time=slot_time))
        day += timedelta(days=1)

    return candidates
