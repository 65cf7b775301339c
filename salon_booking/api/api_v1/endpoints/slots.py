from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from salon_booking.core.auth import ensure_manages_specialist, get_current_user, require_role
from salon_booking.core.errors import SlotNotFound
from salon_booking.schemas.slot import (
    BulkDeleteRequest, BulkDeleteResult, GenerateSlotsResult, ScheduleTemplate, Slot, SlotCreate
)
from salon_booking.schemas.user import Caller, Role
from salon_booking.services.slot_service import (
    create_slot, delete_slot, delete_slots, generate_schedule, get_slot_by_id, list_slots
)

router = APIRouter()

@router.get("/specialist/{specialist_id}", response_model=List[Slot])
async def get_specialist_slots(
    specialist_id: str,
    booked: Optional[bool] = Query(None, description="Filter by booked state"),
    current_user: Caller = Depends(get_current_user)
):
    """
    Get all slots of a specialist, booked ones included (admin or the specialist)
    """
    ensure_manages_specialist(current_user, specialist_id)
    return await list_slots(specialist_id, booked=booked)

@router.post("/", response_model=Slot)
async def create_single_slot(
    slot_in: SlotCreate,
    current_user: Caller = Depends(get_current_user)
):
    """
    Add one free slot (admin or the specialist)
    """
    ensure_manages_specialist(current_user, slot_in.specialistId)
    return await create_slot(slot_in)

@router.post("/generate", response_model=GenerateSlotsResult)
async def generate_slots_from_template(
    template: ScheduleTemplate,
    current_user: Caller = Depends(require_role(Role.ADMIN))
):
    """
    Generate slots from working hours (admin only)

    - **dateFrom** / **dateTo**: Inclusive date range
    - **startTime** / **endTime**: Working hours (format: HH:MM)
    - **stepMinutes**: Minutes between slots
    - **weekdays**: Enabled weekdays, 0 = Sunday ... 6 = Saturday
    """
    return await generate_schedule(template)

@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_single_slot(
    slot_id: str,
    current_user: Caller = Depends(get_current_user)
):
    """
    Delete a free slot. Booked slots must be cancelled first.
    """
    slot = await get_slot_by_id(slot_id)
    if slot is None:
        raise SlotNotFound()
    ensure_manages_specialist(current_user, slot.specialistId)
    await delete_slot(slot_id)

@router.post("/bulk-delete", response_model=BulkDeleteResult)
async def delete_many_slots(
    request: BulkDeleteRequest,
    current_user: Caller = Depends(get_current_user)
):
    """
    Delete several free slots; booked and missing ones are reported back
    """
    if current_user.role != Role.ADMIN:
        for slot_id in request.slotIds:
            slot = await get_slot_by_id(slot_id)
            if slot is not None:
                ensure_manages_specialist(current_user, slot.specialistId)
    return await delete_slots(request.slotIds)
