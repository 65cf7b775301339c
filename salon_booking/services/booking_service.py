"""
Booking coordinator: the only writer of a slot's booked state.

A slot moves Free -> Booked through book_slot() and Booked -> Free through
cancel_appointment(). The Free -> Booked flip is a single conditional update
on the slot document, which is what prevents double booking.
"""
from typing import Optional
from salon_booking.db.mongodb import db
from salon_booking.core.errors import (
    AppointmentNotFound, Forbidden, SlotUnavailable, StoreUnavailable, translate_store_errors
)
from salon_booking.schemas.appointment import Appointment, ContactSnapshot, SpecialistDeletion
from salon_booking.schemas.user import Caller, Role
from salon_booking.services.appointment_service import (
    get_appointment_by_id, list_specialist_appointments, partition_appointments
)
from salon_booking.services.slot_service import (
    delete_all_for_specialist, get_slot_by_id, mark_slot_booked, release_slot
)
from salon_booking.services.specialist_service import (
    get_specialist_by_id, require_specialist, to_object_id
)
from salon_booking.services.vacation import is_day_in_vacation
from datetime import datetime
from bson import ObjectId
from pymongo.errors import PyMongoError
import logging

logger = logging.getLogger(__name__)

def _can_manage(caller: Caller, appointment: Appointment) -> bool:
    if caller.role == Role.ADMIN:
        return True
    if caller.role == Role.SPECIALIST:
        return appointment.specialistId == caller.id
    return appointment.userId == caller.id

async def book_slot(
    slot_id: str,
    caller: Caller,
    contact: Optional[ContactSnapshot] = None
) -> Appointment:
    """
    Book a free slot for a customer

    Args:
        slot_id: The slot to book
        caller: Authenticated caller, must have the customer role
        contact: Contact details to store on the appointment, falling back
            to the caller's own details

    Returns:
        The created appointment

    Raises:
        Forbidden: If the caller is not a customer
        SlotUnavailable: If the slot is missing, already booked or blacked out by a vacation
        StoreUnavailable: If the store fails; the slot is left free in that case
    """
    if caller.role != Role.CUSTOMER:
        logger.warning(f"Caller {caller.id} with role {caller.role.value} tried to book slot {slot_id}")
        raise Forbidden("Only customers can book appointments")

    slot = await get_slot_by_id(slot_id)
    if slot is None or slot.booked:
        raise SlotUnavailable()

    specialist = await get_specialist_by_id(slot.specialistId)
    if specialist is None or is_day_in_vacation(specialist.vacation, slot.date):
        raise SlotUnavailable()

    # Compare-and-swap: exactly one concurrent caller gets the slot
    booked_slot = await mark_slot_booked(slot_id, caller.id)
    if booked_slot is None:
        logger.warning(f"Slot {slot_id} was booked concurrently, rejecting {caller.id}")
        raise SlotUnavailable()

    contact = contact or ContactSnapshot()
    appointment_data = {
        "userId": caller.id,
        "userName": contact.userName or caller.name or caller.email or "",
        "userEmail": contact.userEmail or caller.email or "",
        "userPhone": contact.userPhone or caller.phone or "",
        "specialistId": specialist.id,
        "hairdresserName": specialist.name,
        "hairdresserAddress": specialist.address or "",
        "date": booked_slot.date,
        "time": booked_slot.time,
        "slotId": booked_slot.id,
        "createdAt": datetime.utcnow()
    }

    try:
        result = await db.db.appointments.insert_one(appointment_data)
    except PyMongoError as e:
        logger.error(f"Could not create appointment for slot {slot_id}: {e}")
        # Undo the flip so no booked slot is left without an appointment
        try:
            await release_slot(slot_id)
        except StoreUnavailable:
            logger.error(f"Slot {slot_id} stays booked without an appointment")
        raise StoreUnavailable() from e

    appointment_data["id"] = str(result.inserted_id)
    appointment_data.pop("_id", None)
    logger.info(f"Slot {slot_id} booked by {caller.id}, appointment {appointment_data['id']}")
    return Appointment(**appointment_data)

@translate_store_errors
async def cancel_appointment(appointment_id: str, caller: Caller) -> Appointment:
    """
    Cancel an appointment and free its slot

    Args:
        appointment_id: The appointment to cancel
        caller: The owning customer, the appointment's specialist or an admin

    Returns:
        The cancelled appointment

    Raises:
        AppointmentNotFound: If the appointment does not exist (e.g. already cancelled)
        Forbidden: If the caller may not cancel this appointment
    """
    appointment = await get_appointment_by_id(appointment_id)
    if appointment is None:
        raise AppointmentNotFound()

    if not _can_manage(caller, appointment):
        logger.warning(f"Caller {caller.id} may not cancel appointment {appointment_id}")
        raise Forbidden("You don't have access to this appointment")

    # Delete first: a crash before the release leaves no appointment to cancel twice
    deleted = await db.db.appointments.find_one_and_delete({"_id": to_object_id(appointment_id)})
    if deleted is None:
        raise AppointmentNotFound()

    if appointment.slotId:
        released = await release_slot(appointment.slotId)
        if not released:
            logger.warning(f"Slot {appointment.slotId} of appointment {appointment_id} no longer exists")

    logger.info(f"Appointment {appointment_id} cancelled by {caller.id}")
    return appointment

@translate_store_errors
async def delete_specialist(specialist_id: str, now: Optional[datetime] = None) -> SpecialistDeletion:
    """
    Delete a specialist together with its schedule.

    All slots are removed, booked ones included. Upcoming appointments are
    removed too and returned so their customers can be told; past
    appointments stay as history.
    """
    specialist = await require_specialist(specialist_id)

    upcoming, _ = partition_appointments(await list_specialist_appointments(specialist.id), now)
    if upcoming:
        await db.db.appointments.delete_many(
            {"_id": {"$in": [ObjectId(a.id) for a in upcoming]}}
        )

    deleted_slots = await delete_all_for_specialist(specialist.id)
    await db.db.specialists.delete_one({"_id": ObjectId(specialist.id)})

    logger.info(
        f"Specialist {specialist.id} deleted with {deleted_slots} slots "
        f"and {len(upcoming)} upcoming appointments"
    )
    return SpecialistDeletion(
        specialistId=specialist.id,
        deletedSlots=deleted_slots,
        cancelledAppointments=upcoming
    )
