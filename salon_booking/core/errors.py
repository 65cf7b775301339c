"""
Error kinds raised by the scheduling and booking services.
Each error carries the HTTP status the API layer answers with.
"""
import functools
import logging

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base exception for scheduling and booking operations."""

    status_code = 400
    kind = "BookingError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__


class InvalidScheduleConfig(BookingError):
    """Invalid schedule configuration"""

    status_code = 422
    kind = "InvalidScheduleConfig"


class SlotUnavailable(BookingError):
    """This slot is no longer available, please pick another one"""

    status_code = 409
    kind = "SlotUnavailable"


class SlotInUse(BookingError):
    """Slot is booked, cancel the appointment first"""

    status_code = 409
    kind = "SlotInUse"


class SlotAlreadyExists(BookingError):
    """A slot already exists for this specialist, date and time"""

    status_code = 409
    kind = "SlotAlreadyExists"


class SlotNotFound(BookingError):
    """Slot not found"""

    status_code = 404
    kind = "SlotNotFound"


class SpecialistNotFound(BookingError):
    """Specialist not found"""

    status_code = 404
    kind = "SpecialistNotFound"


class AppointmentNotFound(BookingError):
    """Appointment not found or already cancelled"""

    status_code = 404
    kind = "AppointmentNotFound"


class Forbidden(BookingError):
    """You don't have permission to perform this action"""

    status_code = 403
    kind = "Forbidden"


class StoreUnavailable(BookingError):
    """Data store is unavailable, please retry"""

    status_code = 503
    kind = "StoreUnavailable"


def translate_store_errors(func):
    """Re-raise driver failures of an async store call as StoreUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            logger.error(f"Store failure in {func.__name__}: {e}")
            raise StoreUnavailable() from e

    return wrapper
