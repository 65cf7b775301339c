from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from salon_booking.core.auth import require_role
from salon_booking.schemas.appointment import SpecialistDeletion
from salon_booking.schemas.slot import Slot
from salon_booking.schemas.specialist import (
    Specialist, SpecialistCreate, SpecialistUpdate, VacationUpdate
)
from salon_booking.schemas.user import Caller, Role
from salon_booking.schemas.vacation import VacationStatus
from salon_booking.services.booking_service import delete_specialist
from salon_booking.services.slot_service import list_available_dates, list_bookable_slots
from salon_booking.services.specialist_service import (
    clear_vacation, create_specialist, list_specialists, require_specialist,
    set_vacation, update_specialist
)
from salon_booking.services.vacation import get_vacation_status

router = APIRouter()

@router.get("/", response_model=List[Specialist])
async def get_specialists(
    available_only: bool = Query(False, description="Hide specialists on an active vacation")
):
    """
    Get all specialists
    """
    return await list_specialists(exclude_on_vacation=available_only)

@router.post("/", response_model=Specialist)
async def create_new_specialist(
    specialist_in: SpecialistCreate,
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Create a specialist (admin only)
    """
    return await create_specialist(specialist_in)

@router.get("/{specialist_id}", response_model=Specialist)
async def get_specialist(specialist_id: str):
    """
    Get specialist details
    """
    return await require_specialist(specialist_id)

@router.put("/{specialist_id}", response_model=Specialist)
async def update_specialist_details(
    specialist_id: str,
    specialist_update: SpecialistUpdate,
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Update specialist details (admin only)
    """
    return await update_specialist(specialist_id, specialist_update)

@router.delete("/{specialist_id}", response_model=SpecialistDeletion)
async def delete_specialist_endpoint(
    specialist_id: str,
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Delete a specialist with all slots and upcoming appointments (admin only).
    The removed appointments are returned so their customers can be notified.
    """
    return await delete_specialist(specialist_id)

@router.put("/{specialist_id}/vacation", response_model=Specialist)
async def set_specialist_vacation(
    specialist_id: str,
    vacation: VacationUpdate,
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Declare a vacation window (admin only)
    """
    return await set_vacation(specialist_id, vacation)

@router.delete("/{specialist_id}/vacation", response_model=Specialist)
async def clear_specialist_vacation(
    specialist_id: str,
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Remove the vacation window (admin only)
    """
    return await clear_vacation(specialist_id)

@router.get("/{specialist_id}/vacation-status", response_model=VacationStatus)
async def get_specialist_vacation_status(specialist_id: str):
    """
    Get whether the specialist is on vacation or about to leave
    """
    specialist = await require_specialist(specialist_id)
    return get_vacation_status(specialist.vacation)

@router.get("/{specialist_id}/slots", response_model=List[Slot])
async def get_bookable_slots(
    specialist_id: str,
    date: Optional[str] = Query(None, description="Only slots on this day (YYYY-MM-DD)")
):
    """
    Get the slots a client can book with this specialist
    """
    return await list_bookable_slots(specialist_id, slot_date=date)

@router.get("/{specialist_id}/slots/dates", response_model=List[str])
async def get_bookable_dates(specialist_id: str):
    """
    Get the days on which this specialist has bookable slots
    """
    return await list_available_dates(specialist_id)
