from typing import Any, Dict, Optional, Tuple, Union
from datetime import date, datetime
from salon_booking.core.config import settings
from salon_booking.schemas.specialist import Specialist, VacationPeriod
from salon_booking.schemas.vacation import VacationStatus

VacationLike = Union[VacationPeriod, Dict[str, Any], None]

def _parse_day(value: Any) -> Optional[date]:
    """
    Read a calendar day from an ISO date or datetime string.
    Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None

def _coerce(vacation: VacationLike) -> Optional[VacationPeriod]:
    if vacation is None:
        return None
    if isinstance(vacation, VacationPeriod):
        return vacation
    if isinstance(vacation, dict):
        return VacationPeriod(**{"from": vacation.get("from"), "to": vacation.get("to")})
    return None

def vacation_window(vacation: VacationLike) -> Optional[Tuple[date, date]]:
    """
    Get the (first day, last day) of a vacation, both inclusive,
    or None when the vacation is absent or malformed
    """
    period = _coerce(vacation)
    if period is None:
        return None
    start = _parse_day(period.from_)
    end = _parse_day(period.to)
    if start is None or end is None:
        return None
    return start, end

def get_vacation_status(vacation: VacationLike, today: Optional[date] = None) -> VacationStatus:
    """
    Classify a specialist's availability relative to a vacation period.

    Args:
        vacation: Stored vacation period (may be missing or malformed)
        today: Reference day, defaults to the local current date

    Returns:
        VacationStatus: active while today is inside the window, upcoming when
        the window starts within the configured horizon, otherwise neither
    """
    window = vacation_window(vacation)
    if window is None:
        return VacationStatus()

    period = _coerce(vacation)
    start, end = window
    today = _parse_day(today) if today is not None else date.today()

    if start <= today <= end:
        return VacationStatus(
            active=True,
            upcoming=False,
            from_=period.from_,
            to=period.to,
            daysUntilStart=0,
            # Whole days left, not a ceiling to the end of the last day: the last day reports 0
            daysUntilEnd=max(0, (end - today).days),
        )

    if today < start:
        days_until_start = (start - today).days
        if days_until_start <= settings.VACATION_UPCOMING_HORIZON_DAYS:
            return VacationStatus(
                active=False,
                upcoming=True,
                from_=period.from_,
                to=period.to,
                daysUntilStart=days_until_start,
            )

    # Too far ahead or already over
    return VacationStatus(from_=period.from_, to=period.to)

def is_day_in_vacation(vacation: VacationLike, iso_date: str) -> bool:
    """Check whether a calendar day falls inside the vacation window."""
    window = vacation_window(vacation)
    day = _parse_day(iso_date)
    if window is None or day is None:
        return False
    start, end = window
    return start <= day <= end

def is_specialist_on_vacation(specialist: Specialist, today: Optional[date] = None) -> bool:
    return get_vacation_status(specialist.vacation, today).active
