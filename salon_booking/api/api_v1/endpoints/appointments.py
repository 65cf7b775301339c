from fastapi import APIRouter, Depends
from typing import List
from salon_booking.core.auth import get_current_user, require_role
from salon_booking.core.errors import AppointmentNotFound, Forbidden
from salon_booking.schemas.appointment import (
    Appointment, AppointmentCreate, AppointmentHistory, ContactSnapshot
)
from salon_booking.schemas.user import Caller, Role
from salon_booking.services.appointment_service import (
    get_appointment_by_id, get_specialist_history, get_user_history, list_all_appointments
)
from salon_booking.services.booking_service import book_slot, cancel_appointment

router = APIRouter()

@router.post("/", response_model=Appointment)
async def create_new_appointment(
    appointment_in: AppointmentCreate,
    current_user: Caller = Depends(get_current_user)
):
    """
    Book a slot as a customer
    """
    contact = ContactSnapshot(
        userName=appointment_in.userName,
        userPhone=appointment_in.userPhone,
        userEmail=appointment_in.userEmail
    )
    return await book_slot(appointment_in.slotId, current_user, contact)

@router.get("/", response_model=List[Appointment])
async def get_all_appointments(
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Get every appointment (admin only)
    """
    return await list_all_appointments()

@router.get("/me", response_model=AppointmentHistory)
async def get_my_appointments(current_user: Caller = Depends(get_current_user)):
    """
    Get the current customer's upcoming and past appointments
    """
    return await get_user_history(current_user.id)

@router.get("/specialist/me", response_model=AppointmentHistory)
async def get_my_specialist_appointments(
    current_user: Caller = Depends(require_role(Role.SPECIALIST))
):
    """
    Get appointments with the current specialist
    """
    return await get_specialist_history(current_user.id)

@router.get("/{appointment_id}", response_model=Appointment)
async def get_appointment(
    appointment_id: str,
    current_user: Caller = Depends(get_current_user)
):
    """
    Get appointment details (customer, specialist or admin)
    """
    appointment = await get_appointment_by_id(appointment_id)
    if appointment is None:
        raise AppointmentNotFound()

    allowed = (
        current_user.role == Role.ADMIN
        or appointment.userId == current_user.id
        or (current_user.role == Role.SPECIALIST and appointment.specialistId == current_user.id)
    )
    if not allowed:
        raise Forbidden("You don't have access to this appointment")
    return appointment

@router.delete("/{appointment_id}", response_model=Appointment)
async def cancel_appointment_endpoint(
    appointment_id: str,
    current_user: Caller = Depends(get_current_user)
):
    """
    Cancel an appointment and free its slot
    """
    return await cancel_appointment(appointment_id, current_user)
