from typing import Dict, Any, List, Optional, Tuple
from salon_booking.db.mongodb import db
from salon_booking.core.errors import translate_store_errors
from salon_booking.schemas.appointment import Appointment, AppointmentHistory
from salon_booking.services.specialist_service import to_object_id
from datetime import datetime

def _to_appointment(document: Dict[str, Any]) -> Appointment:
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    return Appointment(**data)

def appointment_start(appointment: Appointment) -> datetime:
    """
    Get the moment an appointment starts.
    Unparseable values sort as the earliest possible moment.
    """
    try:
        return datetime.fromisoformat(f"{appointment.date}T{appointment.time}")
    except ValueError:
        return datetime.min

def partition_appointments(
    appointments: List[Appointment],
    now: Optional[datetime] = None
) -> Tuple[List[Appointment], List[Appointment]]:
    """
    Split appointments into upcoming (soonest first) and past (most recent first)
    """
    now = now or datetime.now()
    upcoming = [a for a in appointments if appointment_start(a) >= now]
    past = [a for a in appointments if appointment_start(a) < now]
    upcoming.sort(key=appointment_start)
    past.sort(key=appointment_start, reverse=True)
    return upcoming, past

@translate_store_errors
async def get_appointment_by_id(appointment_id: str) -> Optional[Appointment]:
    """
    Get an appointment by ID
    """
    object_id = to_object_id(appointment_id)
    if object_id is None:
        return None
    appointment = await db.db.appointments.find_one({"_id": object_id})
    if not appointment:
        return None
    return _to_appointment(appointment)

@translate_store_errors
async def _find(query: Dict[str, Any]) -> List[Appointment]:
    cursor = db.db.appointments.find(query).sort([("date", 1), ("time", 1)])
    return [_to_appointment(doc) for doc in await cursor.to_list(length=None)]

async def list_user_appointments(user_id: str) -> List[Appointment]:
    """
    Get all appointments booked by a user
    """
    return await _find({"userId": user_id})

async def list_specialist_appointments(specialist_id: str) -> List[Appointment]:
    """
    Get all appointments with a specialist
    """
    return await _find({"specialistId": specialist_id})

async def list_all_appointments() -> List[Appointment]:
    """
    Get every appointment, ordered by date and time
    """
    return await _find({})

async def get_user_history(user_id: str, now: Optional[datetime] = None) -> AppointmentHistory:
    upcoming, past = partition_appointments(await list_user_appointments(user_id), now)
    return AppointmentHistory(upcoming=upcoming, past=past)

async def get_specialist_history(specialist_id: str, now: Optional[datetime] = None) -> AppointmentHistory:
    upcoming, past = partition_appointments(await list_specialist_appointments(specialist_id), now)
    return AppointmentHistory(upcoming=upcoming, past=past)
